"""
app/api/admin_users.py

Purpose: Admin user management (auth + admin)

- List / search users
- View, edit, ban/unban, delete a user (every change is audited)
"""

from fastapi import APIRouter, Depends, Request
from typing import Any, Dict, Optional

from app.api.deps import require_admin
from app.schemas.admin import AdminUserUpdate, BanRequest
from app.services import admin_service

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("")
async def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    q: Optional[str] = None,
    status: Optional[str] = None,
    admin: Dict[str, Any] = Depends(require_admin)
):
    return await admin_service.list_users(page=page or 1, limit=limit or 20, q=q, status=status)


@router.get("/{user_id}")
async def get_user(user_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    return {"user": await admin_service.get_user(user_id)}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: AdminUserUpdate,
    request: Request,
    admin: Dict[str, Any] = Depends(require_admin)
):
    user = await admin_service.update_user(admin, user_id, body.changes(), _client_ip(request))
    return {"message": "User updated", "user": user}


@router.post("/{user_id}/ban")
async def ban_user(
    user_id: str,
    body: BanRequest,
    request: Request,
    admin: Dict[str, Any] = Depends(require_admin)
):
    user = await admin_service.set_ban(admin, user_id, body.action, _client_ip(request))
    return {"message": f"User {'banned' if user['banned'] else 'unbanned'}", "user": user}


@router.delete("/{user_id}")
async def delete_user(user_id: str, request: Request, admin: Dict[str, Any] = Depends(require_admin)):
    user = await admin_service.delete_user(admin, user_id, _client_ip(request))
    return {"message": "User deleted", "user": user}
