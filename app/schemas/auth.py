"""
app/schemas/auth.py

Purpose: Auth request bodies

- Registration (plain or CCCD-assisted)
- Email/password and CCCD logins
"""

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Optional

from app.models.user import GENDERS
from utils.validation_utils import is_valid_email, require_text


class RegisterRequest(BaseModel):
    model_config = ConfigDict(
        validate_default=True,
        json_schema_extra={
            "example": {
                "username": "minh",
                "email": "minh@example.com",
                "password": "secret123",
            }
        },
    )

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    # Filled from the CCCD extraction step
    cccd: Optional[str] = None
    name: Optional[str] = None
    fullName: Optional[str] = None
    dateOfBirth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v):
        if not is_valid_email(v):
            raise ValueError("Please provide a valid email")
        return v.strip().lower()

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        if not isinstance(v, str) or len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v):
        if v is None or v == "":
            return None
        if v not in GENDERS:
            raise ValueError("Gender must be one of: Nam, Nữ, Khác")
        return v

    @model_validator(mode="after")
    def validate_username(self):
        # Username may be generated later when registering through CCCD
        if self.cccd and not self.username:
            return self
        if not self.username or not (3 <= len(self.username.strip()) <= 30):
            raise ValueError("Username must be between 3 and 30 characters")
        self.username = self.username.strip()
        return self

    @property
    def display_name(self) -> Optional[str]:
        return self.fullName or self.name


class LoginRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v):
        if not is_valid_email(v):
            raise ValueError("Please provide a valid email")
        return v.strip().lower()

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("Password is required")
        return v


class CccdLoginRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    so_cccd: Optional[str] = None

    @field_validator("so_cccd", mode="before")
    @classmethod
    def validate_cccd(cls, v):
        return require_text(v, "Please provide your CCCD")
