"""Sign-in schemas"""
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field

from posadmin.schemas.staff import StaffResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=100, description="Email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    staff: StaffResponse
    permissions: Dict[str, bool]
    require_password_change: bool = False


class MeResponse(BaseModel):
    staff: StaffResponse
    permissions: Dict[str, bool]


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128, description="At least 6 characters")


class PermissionCheckResponse(BaseModel):
    permission: str
    granted: bool
    role: Optional[str] = None
