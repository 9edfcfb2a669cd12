import asyncio
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.config import settings
from posadmin.core.permissions import full_permissions
from posadmin.core.security import hash_password
from posadmin.db.base import Base
from posadmin.db.session import engine, SessionLocal
from posadmin.models.role import ADMIN_ROLE_NAME

# importing the package registers every table
from posadmin.models import Organization, Role, Staff

logger = logging.getLogger(__name__)


async def ensure_tables_exist() -> None:
    """
    Create missing tables (called on startup)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_defaults(db: AsyncSession) -> Staff:
    """
    Idempotently create the default organization, the admin role and the
    first administrator; returns the administrator
    """
    result = await db.execute(select(Organization).order_by(Organization.id).limit(1))
    organization = result.scalar_one_or_none()
    if not organization:
        organization = Organization(name=settings.DEFAULT_ORGANIZATION_NAME, code="MAIN")
        db.add(organization)
        await db.flush()
        logger.info(f"🏢 Default organization created: {organization.name}")

    result = await db.execute(
        select(Role).where(
            Role.organization_id == organization.id,
            Role.name == ADMIN_ROLE_NAME
        )
    )
    admin_role = result.scalar_one_or_none()
    if not admin_role:
        admin_role = Role(
            organization_id=organization.id,
            name=ADMIN_ROLE_NAME,
            display_name="Administrator",
            description="Full access",
            permissions=full_permissions(),
            is_system=True,
        )
        db.add(admin_role)
        await db.flush()
        logger.info("🔑 Admin role created")

    email = settings.FIRST_ADMIN_EMAIL.lower()
    result = await db.execute(select(Staff).where(Staff.email == email))
    admin = result.scalar_one_or_none()
    if not admin:
        admin = Staff(
            organization_id=organization.id,
            role_id=admin_role.id,
            username=email.split("@")[0],
            email=email,
            password_hash=hash_password(settings.FIRST_ADMIN_PASSWORD),
            full_name=settings.FIRST_ADMIN_NAME,
            job_title="Administrator",
        )
        db.add(admin)
        await db.flush()
        logger.info(f"👤 First administrator created: {email}")

    await db.commit()
    return admin


async def init_db() -> None:
    await ensure_tables_exist()
    async with SessionLocal() as db:
        await seed_defaults(db)


if __name__ == "__main__":
    asyncio.run(init_db())
