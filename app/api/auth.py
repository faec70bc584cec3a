"""
app/api/auth.py

Purpose: Authentication endpoints

- POST /auth/register      create account, returns token
- POST /auth/login         email + password
- POST /auth/login/cccd    CCCD number only
- GET  /auth/me            current user's public profile
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from app.api.deps import get_current_user
from app.core.logging import get_logger
from app.models.user import public_profile
from app.schemas.auth import CccdLoginRequest, LoginRequest, RegisterRequest
from app.services import auth_service
from utils.constants import MSG_LOGIN_OK, MSG_REGISTERED

logger = get_logger(__name__)
router = APIRouter()


@router.post("/register", status_code=201)
async def register(body: RegisterRequest):
    user, token = await auth_service.register_user(
        email=body.email,
        password=body.password,
        username=body.username,
        cccd=body.cccd,
        full_name=body.display_name,
        date_of_birth=body.dateOfBirth,
        gender=body.gender,
        address=body.address,
    )
    logger.info(f"✅ User registered: {user['username']}")
    return {"message": MSG_REGISTERED, "token": token, "user": public_profile(user)}


@router.post("/login")
async def login(body: LoginRequest):
    user, token = await auth_service.login(body.email, body.password)
    return {"message": MSG_LOGIN_OK, "token": token, "user": public_profile(user)}


@router.post("/login/cccd")
async def login_cccd(body: CccdLoginRequest):
    user, token = await auth_service.login_with_cccd(body.so_cccd)
    return {"message": MSG_LOGIN_OK, "token": token, "user": public_profile(user)}


@router.get("/me")
async def me(user: Dict[str, Any] = Depends(get_current_user)):
    return {"user": public_profile(user)}
