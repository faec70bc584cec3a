"""
app/schemas/admin.py

Purpose: Admin request bodies
"""

from pydantic import BaseModel, field_validator
from typing import Any, Dict, Optional

from utils.validation_utils import is_valid_email


class AdminUserUpdate(BaseModel):
    """Safe subset of user fields an admin may edit."""
    fullName: Optional[str] = None
    email: Optional[str] = None
    isVerified: Optional[bool] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("fullName")
    @classmethod
    def validate_full_name(cls, v):
        if v is not None and len(v) > 100:
            raise ValueError("Invalid value")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is not None and not is_valid_email(v):
            raise ValueError("Invalid value")
        return v.strip().lower() if v else v

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class BanRequest(BaseModel):
    action: Optional[str] = None
