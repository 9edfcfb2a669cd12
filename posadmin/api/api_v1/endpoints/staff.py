"""
Staff management API
"""
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.core.security import hash_password
from posadmin.models import Staff, Role, Department, Warehouse, AuthSession
from posadmin.schemas.department import DepartmentResponse
from posadmin.schemas.role import RoleName
from posadmin.schemas.staff import (
    StaffCreate,
    StaffUpdate,
    StaffResponse,
    StaffTableRow,
    StaffListResponse,
    StaffStats,
    WarehouseAssignment,
    WarehouseBrief)

router = APIRouter()


def build_staff_response(staff: Staff) -> StaffResponse:
    return StaffResponse(
        id=staff.id,
        organization_id=staff.organization_id,
        username=staff.username,
        email=staff.email,
        full_name=staff.full_name,
        phone_number=staff.phone_number,
        emergency_number=staff.emergency_number,
        date_of_birth=staff.date_of_birth,
        gender=staff.gender,
        job_title=staff.job_title,
        work_location=staff.work_location or "on-site",
        start_date=staff.start_date,
        bio=staff.bio,
        address=staff.address,
        card_details=staff.card_details,
        account_details=staff.account_details,
        role_id=staff.role_id,
        role_name=staff.role_name,
        department_id=staff.department_id,
        department_name=staff.department_name,
        warehouses=[WarehouseBrief(id=w.id, name=w.name) for w in staff.warehouses],
        is_active=bool(staff.is_active),
        on_leave=bool(staff.on_leave),
        is_banned=bool(staff.is_banned),
        require_password_change=bool(staff.require_password_change),
        last_login=staff.last_login,
        created_at=staff.created_at,
        updated_at=staff.updated_at)


def staff_status(staff: Staff) -> str:
    if staff.on_leave:
        return "on-leave"
    return "active" if staff.is_active else "inactive"


def build_staff_row(staff: Staff) -> StaffTableRow:
    return StaffTableRow(
        id=staff.id,
        full_name=staff.full_name,
        username=staff.username,
        email=staff.email,
        phone_number=staff.phone_number,
        job_title=staff.job_title,
        department=staff.department_name,
        role=staff.role_name,
        status=staff_status(staff),
        created_at=staff.created_at)


async def load_staff(db: AsyncSession, staff_id: int, organization_id: int) -> Staff:
    """Non-deleted staff of the organization, freshly loaded"""
    result = await db.execute(
        select(Staff)
        .where(
            Staff.id == staff_id,
            Staff.organization_id == organization_id,
            Staff.is_deleted == False
        )
        .execution_options(populate_existing=True)
    )
    staff = result.scalar_one_or_none()
    if not staff:
        raise HTTPException(status_code=404, detail="Staff not found")
    return staff


async def generate_username(db: AsyncSession, email: str) -> str:
    """Email local part, lowercased; numeric suffix on collision"""
    base = email.split("@")[0].lower()
    result = await db.execute(
        select(Staff.username).where(
            or_(Staff.username == base, Staff.username.like(f"{base}%"))
        )
    )
    taken = set(result.scalars().all())
    if base not in taken:
        return base
    suffix = 1
    while f"{base}{suffix}" in taken:
        suffix += 1
    return f"{base}{suffix}"


async def check_role(db: AsyncSession, role_id: int, organization_id: int) -> Role:
    role = await db.get(Role, role_id)
    if not role or role.organization_id != organization_id:
        raise HTTPException(status_code=400, detail="Role not found")
    return role


async def check_department(db: AsyncSession, department_id: int, organization_id: int) -> Department:
    department = await db.get(Department, department_id)
    if not department or department.is_deleted or department.organization_id != organization_id:
        raise HTTPException(status_code=400, detail="Department not found")
    return department


async def load_warehouses(db: AsyncSession, warehouse_ids: List[int]) -> List[Warehouse]:
    if not warehouse_ids:
        return []
    unique_ids = list(dict.fromkeys(warehouse_ids))
    result = await db.execute(
        select(Warehouse).where(Warehouse.id.in_(unique_ids), Warehouse.is_deleted == False)
    )
    warehouses = result.scalars().all()
    if len(warehouses) != len(unique_ids):
        raise HTTPException(status_code=400, detail="Warehouse not found")
    return list(warehouses)


async def compute_staff_stats(db: AsyncSession, organization_id: int) -> StaffStats:
    result = await db.execute(
        select(Staff.is_active, Staff.on_leave, func.count(Staff.id))
        .where(Staff.organization_id == organization_id, Staff.is_deleted == False)
        .group_by(Staff.is_active, Staff.on_leave)
    )
    total = active = on_leave = 0
    for is_active, is_on_leave, count in result.all():
        total += count
        if is_active:
            active += count
        if is_on_leave:
            on_leave += count
    return StaffStats(total=total, active=active, inactive=total - active, on_leave=on_leave)


@router.get("/stats", response_model=StaffStats)
async def staff_stats(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.view"))) -> Any:
    """Headcount by status"""
    return await compute_staff_stats(db, current_staff.organization_id)


@router.get("/departments")
async def department_options(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.view"))) -> List[DepartmentResponse]:
    """Departments for the staff form"""
    result = await db.execute(
        select(Department)
        .where(
            Department.organization_id == current_staff.organization_id,
            Department.is_deleted == False
        )
        .order_by(Department.name)
    )
    return [DepartmentResponse.model_validate(d) for d in result.scalars().all()]


@router.get("/roles")
async def role_options(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.view"))) -> List[RoleName]:
    """Active roles for the staff form"""
    result = await db.execute(
        select(Role)
        .where(Role.organization_id == current_staff.organization_id, Role.is_active == True)
        .order_by(Role.display_name)
    )
    return [RoleName(id=r.id, name=r.name, display_name=r.display_name) for r in result.scalars().all()]


@router.get("/", response_model=StaffListResponse)
async def list_staff(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.view")),
    search: Optional[str] = Query(None, description="Name, email or username"),
    department_id: Optional[int] = Query(None),
    role_id: Optional[int] = Query(None)) -> Any:
    """Staff table, newest first"""
    query = select(Staff).where(
        Staff.organization_id == current_staff.organization_id,
        Staff.is_deleted == False
    )
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Staff.full_name.ilike(pattern),
            Staff.email.ilike(pattern),
            Staff.username.ilike(pattern)
        ))
    if department_id:
        query = query.where(Staff.department_id == department_id)
    if role_id:
        query = query.where(Staff.role_id == role_id)

    result = await db.execute(query.order_by(Staff.created_at.desc(), Staff.id.desc()))
    members = result.scalars().all()
    return StaffListResponse(data=[build_staff_row(s) for s in members], total=len(members))


@router.post("/", response_model=StaffResponse)
async def create_staff(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.add")),
    staff_in: StaffCreate) -> Any:
    """Create a staff account"""
    existing = await db.execute(select(Staff.id).where(Staff.email == staff_in.email))
    if existing.scalar():
        raise HTTPException(status_code=400, detail="Email already exists")

    organization_id = current_staff.organization_id
    await check_role(db, staff_in.role_id, organization_id)
    if staff_in.department_id:
        await check_department(db, staff_in.department_id, organization_id)
    warehouses = await load_warehouses(db, staff_in.warehouse_ids)

    data = staff_in.model_dump(exclude={"password", "warehouse_ids"})
    staff = Staff(
        **data,
        organization_id=organization_id,
        username=await generate_username(db, staff_in.email),
        password_hash=hash_password(staff_in.password),
        created_by=current_staff.id
    )
    staff.warehouses = warehouses
    db.add(staff)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="STAFF_CREATED",
        entity_type="staff",
        entity_id=staff.id,
        message=f"Created staff {staff.full_name} ({staff.email})"
    )
    await db.commit()

    staff = await load_staff(db, staff.id, organization_id)
    return build_staff_response(staff)


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.view")),
    staff_id: int) -> Any:
    """Staff details"""
    staff = await load_staff(db, staff_id, current_staff.organization_id)
    return build_staff_response(staff)


@router.put("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.edit")),
    staff_id: int,
    staff_in: StaffUpdate) -> Any:
    """Update staff details (not the password)"""
    organization_id = current_staff.organization_id
    staff = await load_staff(db, staff_id, organization_id)

    if staff_in.email and staff_in.email != staff.email:
        existing = await db.execute(
            select(Staff.id).where(Staff.email == staff_in.email, Staff.id != staff.id)
        )
        if existing.scalar():
            raise HTTPException(status_code=400, detail="Email already exists")

    if staff_in.role_id:
        await check_role(db, staff_in.role_id, organization_id)
    if staff_in.department_id:
        await check_department(db, staff_in.department_id, organization_id)

    update_data = staff_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(staff, field, value)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="STAFF_UPDATED",
        entity_type="staff",
        entity_id=staff.id,
        message=f"Updated staff {staff.full_name}",
        details={"fields": sorted(update_data.keys())}
    )
    await db.commit()

    staff = await load_staff(db, staff_id, organization_id)
    return build_staff_response(staff)


@router.put("/{staff_id}/warehouses", response_model=StaffResponse)
async def assign_warehouses(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.edit")),
    staff_id: int,
    assignment: WarehouseAssignment) -> Any:
    """Replace the staff member's warehouse assignment"""
    staff = await load_staff(db, staff_id, current_staff.organization_id)
    staff.warehouses = await load_warehouses(db, assignment.warehouse_ids)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="STAFF_WAREHOUSES_ASSIGNED",
        entity_type="staff",
        entity_id=staff.id,
        details={"warehouse_ids": [w.id for w in staff.warehouses]}
    )
    await db.commit()

    staff = await load_staff(db, staff_id, current_staff.organization_id)
    return build_staff_response(staff)


@router.delete("/{staff_id}")
async def delete_staff(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("staff.delete")),
    staff_id: int) -> Any:
    """Soft delete; open sessions are revoked"""
    if staff_id == current_staff.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    staff = await load_staff(db, staff_id, current_staff.organization_id)
    staff.is_deleted = True
    staff.is_active = False
    await db.execute(delete(AuthSession).where(AuthSession.staff_id == staff.id))

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="STAFF_DELETED",
        entity_type="staff",
        entity_id=staff.id,
        message=f"Deleted staff {staff.full_name}"
    )
    await db.commit()

    return {"message": "Staff deleted"}
