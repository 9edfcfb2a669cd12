"""
Supplier API
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Supplier, Staff
from posadmin.schemas.supplier import (
    SupplierCreate,
    SupplierUpdate,
    SupplierStatusUpdate,
    SupplierResponse,
    SupplierTableRow,
    SupplierListResponse,
    SupplierStats)
from posadmin.services.pricing import to_money

router = APIRouter()


def build_supplier_row(supplier: Supplier) -> SupplierTableRow:
    return SupplierTableRow(
        id=supplier.id,
        name=supplier.name,
        contact_person=supplier.contact_person,
        email=supplier.email,
        phone=supplier.phone,
        city=supplier.city,
        status=supplier.status,
        rating=supplier.rating or 0,
        total_orders=supplier.total_orders or 0,
        total_spent=supplier.total_spent or Decimal("0"),
        last_order_date=supplier.last_order_date)


async def get_supplier_or_404(db: AsyncSession, supplier_id: int) -> Supplier:
    supplier = await db.get(Supplier, supplier_id)
    if not supplier or supplier.is_deleted:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


async def check_email_free(db: AsyncSession, email: str, exclude_id: int = None) -> None:
    query = select(Supplier.id).where(Supplier.email == email)
    if exclude_id:
        query = query.where(Supplier.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Supplier with this email already exists")


@router.get("/stats", response_model=SupplierStats)
async def supplier_stats(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.view"))) -> Any:
    """Supplier counters"""
    result = await db.execute(
        select(
            func.count(Supplier.id),
            func.sum(Supplier.total_spent),
            func.avg(Supplier.rating)
        ).where(Supplier.is_deleted == False)
    )
    total, total_spent, average_rating = result.one()

    status_result = await db.execute(
        select(Supplier.status, func.count(Supplier.id))
        .where(Supplier.is_deleted == False)
        .group_by(Supplier.status)
    )
    by_status = dict(status_result.all())

    return SupplierStats(
        total_suppliers=total or 0,
        active_suppliers=by_status.get("active", 0),
        pending_suppliers=by_status.get("pending", 0),
        total_spent=to_money(total_spent),
        average_rating=round(float(average_rating or 0), 1)
    )


@router.get("/", response_model=SupplierListResponse)
async def list_suppliers(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.view")),
    status: Optional[str] = Query(None, description="active/inactive/pending"),
    search: Optional[str] = Query(None, description="Name, contact or email")) -> Any:
    """Supplier table, newest first"""
    query = select(Supplier).where(Supplier.is_deleted == False)
    if status:
        query = query.where(Supplier.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Supplier.name.ilike(pattern),
            Supplier.contact_person.ilike(pattern),
            Supplier.email.ilike(pattern)
        ))
    result = await db.execute(query.order_by(Supplier.created_at.desc(), Supplier.id.desc()))
    suppliers = result.scalars().all()
    return SupplierListResponse(data=[build_supplier_row(s) for s in suppliers], total=len(suppliers))


@router.post("/", response_model=SupplierResponse)
async def create_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.add")),
    supplier_in: SupplierCreate) -> Any:
    """Create a supplier"""
    await check_email_free(db, supplier_in.email)

    now = datetime.utcnow()
    supplier = Supplier(
        **supplier_in.model_dump(),
        join_date=now,
        last_order_date=now,
        total_orders=0,
        total_spent=Decimal("0.00"),
        current_balance=Decimal("0.00"),
        created_by=current_staff.id
    )
    db.add(supplier)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SUPPLIER_CREATED",
        entity_type="supplier",
        entity_id=supplier.id,
        message=f"Created supplier {supplier.name}"
    )
    await db.commit()
    await db.refresh(supplier)

    return SupplierResponse.model_validate(supplier)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.view")),
    supplier_id: int) -> Any:
    """Supplier details"""
    supplier = await get_supplier_or_404(db, supplier_id)
    return SupplierResponse.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.edit")),
    supplier_id: int,
    supplier_in: SupplierUpdate) -> Any:
    """Update a supplier"""
    supplier = await get_supplier_or_404(db, supplier_id)

    if supplier_in.email and supplier_in.email != supplier.email:
        await check_email_free(db, supplier_in.email, exclude_id=supplier.id)

    update_data = supplier_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "contact_person", "email", "phone", "rating", "credit_limit"):
            continue
        setattr(supplier, field, value)

    await db.commit()
    await db.refresh(supplier)

    return SupplierResponse.model_validate(supplier)


@router.patch("/{supplier_id}/status", response_model=SupplierResponse)
async def update_supplier_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.edit")),
    supplier_id: int,
    status_in: SupplierStatusUpdate) -> Any:
    """Activate, deactivate or park a supplier"""
    supplier = await get_supplier_or_404(db, supplier_id)
    old_status = supplier.status
    supplier.status = status_in.status

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SUPPLIER_STATUS_CHANGED",
        entity_type="supplier",
        entity_id=supplier.id,
        details={"from": old_status, "to": status_in.status}
    )
    await db.commit()
    await db.refresh(supplier)

    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}")
async def delete_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("supplier.delete")),
    supplier_id: int) -> Any:
    """Soft delete"""
    supplier = await get_supplier_or_404(db, supplier_id)
    supplier.is_deleted = True
    supplier.status = "inactive"

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SUPPLIER_DELETED",
        entity_type="supplier",
        entity_id=supplier.id,
        message=f"Deleted supplier {supplier.name}"
    )
    await db.commit()

    return {"message": "Supplier deleted"}
