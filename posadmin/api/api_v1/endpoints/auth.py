"""
Sign-in API - bearer session tokens stored in the database
"""
import logging
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.staff import build_staff_response
from posadmin.core.deps import bearer_scheme, get_current_staff, get_db
from posadmin.core.permissions import all_permission_codes
from posadmin.core.security import (
    generate_session_token,
    hash_password,
    session_expiry,
    verify_password)
from posadmin.models import AuthSession, Staff
from posadmin.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    PermissionCheckResponse)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    *,
    db: AsyncSession = Depends(get_db),
    credentials: LoginRequest) -> Any:
    """Exchange email + password for a session token"""
    email = credentials.email.strip().lower()
    result = await db.execute(select(Staff).where(Staff.email == email))
    staff = result.scalar_one_or_none()

    if not staff or not staff.can_sign_in or not verify_password(credentials.password, staff.password_hash):
        logger.info(f"Failed login for {email}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    auth_session = AuthSession(
        token=generate_session_token(),
        staff_id=staff.id,
        expires_at=session_expiry()
    )
    db.add(auth_session)
    staff.last_login = datetime.utcnow()

    await create_history(
        db,
        staff_id=staff.id,
        action_type="STAFF_LOGIN",
        entity_type="staff",
        entity_id=staff.id,
        message=f"{staff.username} signed in"
    )
    await db.commit()
    logger.info(f"🔐 {staff.username} signed in")

    return LoginResponse(
        access_token=auth_session.token,
        expires_at=auth_session.expires_at,
        staff=build_staff_response(staff),
        permissions=staff.permission_map(),
        require_password_change=bool(staff.require_password_change)
    )


@router.post("/logout")
async def logout(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> Any:
    """Revoke the current session token"""
    await db.execute(
        delete(AuthSession).where(AuthSession.token == credentials.credentials)
    )
    await db.commit()
    return {"message": "Signed out"}


@router.get("/me", response_model=MeResponse)
async def me(
    *,
    current_staff: Staff = Depends(get_current_staff)) -> Any:
    """Current profile and effective permissions"""
    return MeResponse(
        staff=build_staff_response(current_staff),
        permissions=current_staff.permission_map()
    )


@router.post("/change-password")
async def change_password(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
    password_in: ChangePasswordRequest) -> Any:
    """Change own password"""
    if not verify_password(password_in.old_password, current_staff.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if password_in.old_password == password_in.new_password:
        raise HTTPException(status_code=400, detail="New password must differ from the current one")

    current_staff.password_hash = hash_password(password_in.new_password)
    current_staff.require_password_change = False

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PASSWORD_CHANGED",
        entity_type="staff",
        entity_id=current_staff.id
    )
    await db.commit()
    return {"message": "Password changed"}


@router.get("/check/{code}", response_model=PermissionCheckResponse)
async def check_permission(
    *,
    current_staff: Staff = Depends(get_current_staff),
    code: str) -> Any:
    """Whether the current staff holds a permission"""
    if code not in all_permission_codes():
        raise HTTPException(status_code=404, detail="Unknown permission code")
    return PermissionCheckResponse(
        permission=code,
        granted=current_staff.has_permission(code),
        role=current_staff.role.name if current_staff.role else None
    )
