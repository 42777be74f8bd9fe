# models/user.py

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from core.roles import Role, is_valid_role
from .common import RequiredStr, TrimmedStr, reject_null


def _registered_role(value: str) -> str:
    if not is_valid_role(value):
        raise ValueError(f"role must be one of: {', '.join(Role.list())}")
    return value


# ===============================================================
# AUTH PAYLOADS
# ===============================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: RequiredStr


class PasswordResetRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


# ===============================================================
# ADMIN USER MANAGEMENT
# ===============================================================

class AdminCreateUser(BaseModel):
    """
    Payload used by admins when creating a login + users profile row.
    The role is checked against the role registry; unknown roles are
    rejected, never stored.
    """
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: RequiredStr
    role: RequiredStr

    phone: Optional[TrimmedStr] = None
    department: Optional[TrimmedStr] = None
    is_active: bool = True

    @field_validator("role")
    def validate_role(cls, v):
        return _registered_role(v)


class AdminUpdateUser(BaseModel):
    """
    Partial update to a users profile row (admin only)
    """
    full_name: Optional[RequiredStr] = None
    phone: Optional[TrimmedStr] = None
    role: Optional[str] = None
    department: Optional[TrimmedStr] = None
    is_active: Optional[bool] = None

    @field_validator("full_name", "role", "is_active")
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("role")
    def validate_role(cls, v):
        if v is None:
            return v
        return _registered_role(v)
