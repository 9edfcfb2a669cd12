"""
Roles & permissions API
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.core.permissions import normalize_permissions, permission_modules
from posadmin.models import Role, Staff
from posadmin.schemas.role import (
    RoleCreate,
    RoleUpdate,
    RoleResponse,
    RoleListResponse,
    RoleName)

router = APIRouter()


def build_role_response(role: Role, staff_count: int = 0) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        organization_id=role.organization_id,
        name=role.name,
        display_name=role.display_name,
        description=role.description,
        permissions=role.permissions or {},
        is_system=bool(role.is_system),
        is_active=bool(role.is_active),
        staff_count=staff_count,
        created_at=role.created_at,
        updated_at=role.updated_at)


async def staff_counts(db: AsyncSession, organization_id: int) -> Dict[int, int]:
    result = await db.execute(
        select(Staff.role_id, func.count(Staff.id))
        .where(Staff.organization_id == organization_id, Staff.is_deleted == False)
        .group_by(Staff.role_id)
    )
    return dict(result.all())


async def get_role_or_404(db: AsyncSession, role_id: int, organization_id: int) -> Role:
    role = await db.get(Role, role_id)
    if not role or role.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


async def check_unique_names(
    db: AsyncSession,
    organization_id: int,
    name: str = None,
    display_name: str = None,
    exclude_id: int = None) -> None:
    conditions = []
    if name:
        conditions.append(Role.name == name)
    if display_name:
        conditions.append(func.lower(Role.display_name) == display_name.strip().lower())
    if not conditions:
        return
    query = select(Role.id).where(Role.organization_id == organization_id, or_(*conditions))
    if exclude_id:
        query = query.where(Role.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Role already exists")


@router.get("/permissions")
async def list_permissions(
    *,
    current_staff: Staff = Depends(require_permission("role.view"))) -> List[dict]:
    """Permission catalogue grouped by module"""
    return permission_modules()


@router.get("/names")
async def list_role_names(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.view"))) -> List[RoleName]:
    """Role names (dropdown)"""
    result = await db.execute(
        select(Role)
        .where(Role.organization_id == current_staff.organization_id)
        .order_by(Role.display_name)
    )
    return [RoleName(id=r.id, name=r.name, display_name=r.display_name) for r in result.scalars().all()]


@router.get("/by-display-name/{display_name}", response_model=RoleResponse)
async def get_role_by_display_name(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.view")),
    display_name: str) -> Any:
    """Look a role up by its display name (case-insensitive)"""
    result = await db.execute(
        select(Role).where(
            Role.organization_id == current_staff.organization_id,
            func.lower(Role.display_name) == display_name.strip().lower()
        )
    )
    role = result.scalars().first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    counts = await staff_counts(db, current_staff.organization_id)
    return build_role_response(role, counts.get(role.id, 0))


@router.get("/", response_model=RoleListResponse)
async def list_roles(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.view"))) -> Any:
    """Roles of the organization"""
    result = await db.execute(
        select(Role)
        .where(Role.organization_id == current_staff.organization_id)
        .order_by(Role.id)
    )
    roles = result.scalars().all()
    counts = await staff_counts(db, current_staff.organization_id)
    return RoleListResponse(
        data=[build_role_response(r, counts.get(r.id, 0)) for r in roles],
        total=len(roles)
    )


@router.post("/", response_model=RoleResponse)
async def create_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.add")),
    role_in: RoleCreate) -> Any:
    """Create a role"""
    organization_id = current_staff.organization_id
    await check_unique_names(db, organization_id, role_in.name, role_in.display_name)

    try:
        permissions = normalize_permissions(role_in.permissions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    role = Role(
        organization_id=organization_id,
        name=role_in.name,
        display_name=role_in.display_name.strip(),
        description=role_in.description,
        permissions=permissions,
        is_active=role_in.is_active,
        is_system=False,
        created_by=current_staff.id
    )
    db.add(role)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="ROLE_CREATED",
        entity_type="role",
        entity_id=role.id,
        message=f"Created role {role.display_name}",
        details={"granted": role.granted_permissions}
    )
    await db.commit()
    await db.refresh(role)

    return build_role_response(role)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.view")),
    role_id: int) -> Any:
    """Role details"""
    role = await get_role_or_404(db, role_id, current_staff.organization_id)
    counts = await staff_counts(db, current_staff.organization_id)
    return build_role_response(role, counts.get(role.id, 0))


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.edit")),
    role_id: int,
    role_in: RoleUpdate) -> Any:
    """Update a role; permission changes merge into the stored map"""
    organization_id = current_staff.organization_id
    role = await get_role_or_404(db, role_id, organization_id)

    if role.is_system:
        if role_in.name and role_in.name != role.name:
            raise HTTPException(status_code=400, detail="System role cannot be renamed")
        if role_in.is_active is False:
            raise HTTPException(status_code=400, detail="System role cannot be deactivated")

    new_name = role_in.name if role_in.name and role_in.name != role.name else None
    new_display = (
        role_in.display_name
        if role_in.display_name and role_in.display_name.strip().lower() != role.display_name.lower()
        else None
    )
    await check_unique_names(db, organization_id, new_name, new_display, exclude_id=role.id)

    update_data = role_in.model_dump(exclude_unset=True)
    if "permissions" in update_data:
        try:
            update_data["permissions"] = normalize_permissions(
                update_data["permissions"], base=role.permissions
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    for field, value in update_data.items():
        if value is None and field in ("name", "display_name", "permissions"):
            continue
        setattr(role, field, value)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="ROLE_UPDATED",
        entity_type="role",
        entity_id=role.id,
        message=f"Updated role {role.display_name}",
        details={"fields": sorted(update_data.keys())}
    )
    await db.commit()
    await db.refresh(role)

    counts = await staff_counts(db, organization_id)
    return build_role_response(role, counts.get(role.id, 0))


@router.delete("/{role_id}")
async def delete_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("role.delete")),
    role_id: int) -> Any:
    """Delete a role that no staff member holds"""
    role = await get_role_or_404(db, role_id, current_staff.organization_id)
    if role.is_system:
        raise HTTPException(status_code=400, detail="System role cannot be deleted")

    counts = await staff_counts(db, current_staff.organization_id)
    if counts.get(role.id, 0):
        raise HTTPException(status_code=400, detail="Role is still assigned to staff")

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="ROLE_DELETED",
        entity_type="role",
        entity_id=role.id,
        message=f"Deleted role {role.display_name}"
    )
    await db.delete(role)
    await db.commit()

    return {"message": "Role deleted"}
