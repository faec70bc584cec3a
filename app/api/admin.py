"""
app/api/admin.py

Purpose: Admin dashboard endpoints (auth + admin)

- GET /admin/stats
- GET /admin/metrics
- GET /admin/audit
- GET /admin/user-analytics/{user_id}
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict, Optional

from app.api.deps import require_admin
from app.services import admin_service

router = APIRouter()


@router.get("/stats")
async def stats(admin: Dict[str, Any] = Depends(require_admin)):
    return await admin_service.get_stats()


@router.get("/metrics")
async def metrics(
    metric: Optional[str] = None,
    days: Optional[str] = None,
    bucket: Optional[str] = None,
    admin: Dict[str, Any] = Depends(require_admin)
):
    return await admin_service.get_metrics(metric, days, bucket)


@router.get("/audit")
async def audit(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    adminId: Optional[str] = None,
    action: Optional[str] = None,
    days: Optional[str] = None,
    admin: Dict[str, Any] = Depends(require_admin)
):
    return await admin_service.list_audits(
        page=page or 1,
        limit=limit or 50,
        admin_id=adminId,
        action=action,
        days=days or 30,
    )


@router.get("/user-analytics/{user_id}")
async def user_analytics(user_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    return await admin_service.get_user_analytics(user_id)
