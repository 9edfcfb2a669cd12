"""
Department API
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Department, Staff
from posadmin.schemas.department import (
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentResponse,
    DepartmentListResponse)

router = APIRouter()


def build_department_response(department: Department, staff_count: int = 0) -> DepartmentResponse:
    return DepartmentResponse(
        id=department.id,
        organization_id=department.organization_id,
        name=department.name,
        description=department.description,
        staff_count=staff_count,
        created_at=department.created_at,
        updated_at=department.updated_at)


async def member_counts(db: AsyncSession, organization_id: int, active_only: bool = False) -> Dict[int, int]:
    query = (
        select(Staff.department_id, func.count(Staff.id))
        .where(
            Staff.organization_id == organization_id,
            Staff.is_deleted == False,
            Staff.department_id != None
        )
        .group_by(Staff.department_id)
    )
    if active_only:
        query = query.where(Staff.is_active == True)
    return dict((await db.execute(query)).all())


async def get_department_or_404(db: AsyncSession, department_id: int, organization_id: int) -> Department:
    department = await db.get(Department, department_id)
    if not department or department.is_deleted or department.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Department not found")
    return department


async def check_name_free(db: AsyncSession, organization_id: int, name: str, exclude_id: int = None) -> None:
    query = select(Department.id).where(
        Department.organization_id == organization_id,
        Department.is_deleted == False,
        func.lower(Department.name) == name.strip().lower()
    )
    if exclude_id:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Department already created")


@router.get("/", response_model=DepartmentListResponse)
async def list_departments(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("department.view"))) -> Any:
    """Departments of the organization"""
    result = await db.execute(
        select(Department)
        .where(
            Department.organization_id == current_staff.organization_id,
            Department.is_deleted == False
        )
        .order_by(Department.name)
    )
    departments = result.scalars().all()
    counts = await member_counts(db, current_staff.organization_id)
    return DepartmentListResponse(
        data=[build_department_response(d, counts.get(d.id, 0)) for d in departments],
        total=len(departments)
    )


@router.post("/", response_model=DepartmentResponse)
async def create_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("department.add")),
    department_in: DepartmentCreate) -> Any:
    """Create a department"""
    await check_name_free(db, current_staff.organization_id, department_in.name)

    department = Department(
        organization_id=current_staff.organization_id,
        name=department_in.name.strip(),
        description=department_in.description,
        created_by=current_staff.id
    )
    db.add(department)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="DEPARTMENT_CREATED",
        entity_type="department",
        entity_id=department.id,
        message=f"Created department {department.name}"
    )
    await db.commit()
    await db.refresh(department)

    return build_department_response(department)


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("department.view")),
    department_id: int) -> Any:
    """Department details"""
    department = await get_department_or_404(db, department_id, current_staff.organization_id)
    counts = await member_counts(db, current_staff.organization_id)
    return build_department_response(department, counts.get(department.id, 0))


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("department.edit")),
    department_id: int,
    department_in: DepartmentUpdate) -> Any:
    """Update a department"""
    department = await get_department_or_404(db, department_id, current_staff.organization_id)

    if department_in.name and department_in.name.strip().lower() != department.name.lower():
        await check_name_free(db, current_staff.organization_id, department_in.name, exclude_id=department.id)

    update_data = department_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field == "name":
            if not value:
                continue
            value = value.strip()
        setattr(department, field, value)

    await db.commit()
    await db.refresh(department)

    counts = await member_counts(db, current_staff.organization_id)
    return build_department_response(department, counts.get(department.id, 0))


@router.delete("/{department_id}")
async def delete_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("department.delete")),
    department_id: int) -> Any:
    """Soft delete; refused while active staff belong to it"""
    department = await get_department_or_404(db, department_id, current_staff.organization_id)

    counts = await member_counts(db, current_staff.organization_id, active_only=True)
    if counts.get(department.id, 0):
        raise HTTPException(status_code=400, detail="Department still has active staff")

    department.is_deleted = True
    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="DEPARTMENT_DELETED",
        entity_type="department",
        entity_id=department.id,
        message=f"Deleted department {department.name}"
    )
    await db.commit()

    return {"message": "Department deleted"}
