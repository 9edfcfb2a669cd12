"""Dependency injection - database session, current staff and permission guards"""
from datetime import datetime
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.permissions import all_permission_codes
from posadmin.db.session import SessionLocal
from posadmin.models import AuthSession, Staff

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency
    """
    async with SessionLocal() as session:
        yield session


async def get_current_staff(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Staff:
    """Resolve the bearer token to a signed-in staff member"""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(
        select(AuthSession).where(AuthSession.token == credentials.credentials)
    )
    auth_session = result.scalar_one_or_none()
    if not auth_session or auth_session.expires_at < datetime.utcnow():
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )

    staff = await db.get(Staff, auth_session.staff_id)
    if not staff or not staff.can_sign_in:
        raise HTTPException(status_code=401, detail="Account is disabled")
    return staff


def require_permission(code: str):
    """Dependency factory: the current staff must hold `code`"""
    if code not in all_permission_codes():
        raise ValueError(f"Unknown permission code: {code}")

    async def permission_checker(current_staff: Staff = Depends(get_current_staff)) -> Staff:
        if not current_staff.has_permission(code):
            raise HTTPException(status_code=403, detail=f"Permission denied: {code}")
        return current_staff

    return permission_checker
