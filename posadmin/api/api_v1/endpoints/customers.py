"""
Customer API
"""
from datetime import datetime
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.deps import get_db, require_permission
from posadmin.models import Customer, Staff
from posadmin.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    LoyaltyPointsUpdate)

router = APIRouter()


async def get_customer_or_404(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer or customer.is_deleted:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("/")
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.view")),
    search: Optional[str] = Query(None, description="Name, email or phone"),
    limit: int = Query(100, ge=1, le=500)) -> List[CustomerResponse]:
    """Active customers, most recent visit first"""
    query = select(Customer).where(Customer.is_active == True, Customer.is_deleted == False)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern)
        ))
    query = query.order_by(Customer.last_visit.desc(), Customer.id.desc()).limit(limit)
    result = await db.execute(query)
    return [CustomerResponse.model_validate(c) for c in result.scalars().all()]


@router.post("/", response_model=CustomerResponse)
async def create_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.add")),
    customer_in: CustomerCreate) -> Any:
    """Create a customer"""
    customer = Customer(
        **customer_in.model_dump(),
        loyalty_points=0,
        total_orders=0,
        tier="bronze",
        last_visit=datetime.utcnow(),
        created_by=current_staff.id
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.view")),
    customer_id: int) -> Any:
    """Customer details"""
    customer = await get_customer_or_404(db, customer_id)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.edit")),
    customer_id: int,
    customer_in: CustomerUpdate) -> Any:
    """Update a customer"""
    customer = await get_customer_or_404(db, customer_id)

    update_data = customer_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "preferences", "is_active"):
            continue
        setattr(customer, field, value)

    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.post("/{customer_id}/points", response_model=CustomerResponse)
async def add_loyalty_points(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.edit")),
    customer_id: int,
    points_in: LoyaltyPointsUpdate) -> Any:
    """Add loyalty points and record a visit"""
    customer = await get_customer_or_404(db, customer_id)
    customer.loyalty_points = (customer.loyalty_points or 0) + points_in.points
    customer.last_visit = datetime.utcnow()

    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}")
async def delete_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("customer.delete")),
    customer_id: int) -> Any:
    """Soft delete"""
    customer = await get_customer_or_404(db, customer_id)
    customer.is_deleted = True
    customer.is_active = False
    await db.commit()

    return {"message": "Customer deleted"}
