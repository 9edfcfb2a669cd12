"""Product batch (stock) API"""

from typing import Any, List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.warehouses import get_active_warehouse
from posadmin.core.deps import get_db, require_permission
from posadmin.models import ProductBatch, Product, Supplier, Staff
from posadmin.schemas.product_batch import (
    BatchCreate,
    BatchAdjust,
    StockDeduct,
    BatchResponse,
    BatchListResponse,
    AllocationLine,
    DeductResponse,
    PricingQuery,
    PricingResult)
from posadmin.services.inventory import available_batches, consume_fifo, create_batch
from posadmin.services.pricing import (
    to_money,
    selling_price as price_with_margin,
    margin_percent,
    markup_percent)

router = APIRouter()


def build_batch_response(batch: ProductBatch) -> BatchResponse:
    return BatchResponse(
        id=batch.id,
        batch_number=batch.batch_number,
        product_id=batch.product_id,
        product_name=batch.product.name if batch.product else "",
        product_sku=batch.product.sku if batch.product else None,
        warehouse_id=batch.warehouse_id,
        warehouse_name=batch.warehouse.name if batch.warehouse else "",
        supplier_id=batch.supplier_id,
        supplier_name=batch.supplier.name if batch.supplier else "",
        purchase_id=batch.purchase_id,
        transfer_id=batch.transfer_id,

        unit_cost=batch.unit_cost,
        additional_expenses=batch.additional_expenses or 0,
        landed_unit_cost=batch.landed_unit_cost,
        selling_price=batch.selling_price,
        margin_percent=batch.margin_percent,
        markup_percent=batch.markup_percent,

        quantity=batch.quantity,
        remaining=batch.remaining,
        stock_value=batch.stock_value,

        status=batch.status,
        status_display=batch.status_display,
        is_depleted=bool(batch.is_depleted),
        depleted_at=batch.depleted_at,
        expiry_date=batch.expiry_date,
        notes=batch.notes,
        created_at=batch.created_at,
        updated_at=batch.updated_at)


async def load_batch(db: AsyncSession, batch_id: int) -> ProductBatch:
    result = await db.execute(
        select(ProductBatch)
        .where(ProductBatch.id == batch_id)
        .execution_options(populate_existing=True)
    )
    batch = result.scalar_one_or_none()
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    return batch


async def get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise HTTPException(status_code=400, detail=f"Product {product_id} not found")
    return product


@router.get("/", response_model=BatchListResponse)
async def list_batches(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.view")),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="in_stock/depleted/expired"),
    include_depleted: bool = Query(False, description="Include fully consumed batches"),
    search: Optional[str] = Query(None, description="Batch number or product name")) -> Any:
    """Batch list, newest first"""
    query = select(ProductBatch)
    conditions = []

    if status:
        conditions.append(ProductBatch.status == status)
    elif not include_depleted:
        conditions.append(ProductBatch.is_depleted == False)

    if product_id:
        conditions.append(ProductBatch.product_id == product_id)
    if warehouse_id:
        conditions.append(ProductBatch.warehouse_id == warehouse_id)
    if supplier_id:
        conditions.append(ProductBatch.supplier_id == supplier_id)

    if search:
        conditions.append(
            or_(
                ProductBatch.batch_number.ilike(f"%{search}%"),
                ProductBatch.product_id.in_(
                    select(Product.id).where(Product.name.ilike(f"%{search}%"))
                ))
        )

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(ProductBatch.created_at.desc(), ProductBatch.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    batches = result.scalars().unique().all()

    return BatchListResponse(
        data=[build_batch_response(b) for b in batches],
        total=total,
        page=page,
        limit=limit)


@router.get("/available")
async def list_available_batches(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.view")),
    product_id: int = Query(..., description="Product"),
    warehouse_id: int = Query(..., description="Warehouse")) -> List[BatchResponse]:
    """Batches a sale would draw from, in FIFO order"""
    batches = await available_batches(db, product_id, warehouse_id)
    return [build_batch_response(b) for b in batches]


@router.post("/pricing", response_model=PricingResult)
async def calculate_pricing(
    *,
    current_staff: Staff = Depends(require_permission("batch.view")),
    pricing_in: PricingQuery) -> Any:
    """Price calculator: selling price from a margin, or margins from a price"""
    cost = to_money(pricing_in.cost)
    if pricing_in.selling_price is not None:
        price = to_money(pricing_in.selling_price)
    else:
        price = price_with_margin(cost, pricing_in.margin)

    return PricingResult(
        cost=cost,
        selling_price=price,
        margin_percent=margin_percent(cost, price),
        markup_percent=markup_percent(cost, price),
        profit_per_unit=to_money(price - cost))


@router.post("/deduct", response_model=DeductResponse)
async def deduct_stock(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.edit")),
    deduct_in: StockDeduct) -> Any:
    """Take stock out of a warehouse FIFO (breakage, internal use...)"""
    await get_active_product(db, deduct_in.product_id)
    await get_active_warehouse(db, deduct_in.warehouse_id)

    allocations = await consume_fifo(db, deduct_in.product_id, deduct_in.warehouse_id, deduct_in.quantity)
    lines = [
        AllocationLine(
            batch_id=a.batch.id,
            batch_number=a.batch.batch_number,
            quantity=a.quantity,
            unit_cost=a.unit_cost,
            cost_amount=a.cost_amount)
        for a in allocations
    ]
    total_cost = to_money(sum(line.cost_amount for line in lines))

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="STOCK_DEDUCTED",
        entity_type="product",
        entity_id=deduct_in.product_id,
        message=deduct_in.reason,
        details={
            "warehouse_id": deduct_in.warehouse_id,
            "quantity": deduct_in.quantity,
            "batches": [{"batch_id": line.batch_id, "quantity": line.quantity} for line in lines],
        }
    )
    await db.commit()

    return DeductResponse(
        product_id=deduct_in.product_id,
        warehouse_id=deduct_in.warehouse_id,
        quantity=deduct_in.quantity,
        total_cost=total_cost,
        allocations=lines)


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.view")),
    batch_id: int) -> Any:
    """Batch details"""
    return build_batch_response(await load_batch(db, batch_id))


@router.post("/")
async def create_batches(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.add")),
    batch_in: BatchCreate) -> List[BatchResponse]:
    """Add stock: one batch per item

    selling_price is used as given; otherwise it is the landed unit cost
    plus `margin` percent.
    """
    created = []
    for item in batch_in.items:
        await get_active_product(db, item.product_id)
        await get_active_warehouse(db, item.warehouse_id)
        if item.supplier_id:
            supplier = await db.get(Supplier, item.supplier_id)
            if not supplier or supplier.is_deleted:
                raise HTTPException(status_code=400, detail="Supplier not found")

        batch = await create_batch(
            db,
            product_id=item.product_id,
            warehouse_id=item.warehouse_id,
            supplier_id=item.supplier_id,
            unit_cost=item.unit_cost,
            quantity=item.quantity,
            additional_expenses=item.additional_expenses,
            selling_price=item.selling_price,
            margin=item.margin,
            expiry_date=item.expiry_date,
            notes=item.notes,
            created_by=current_staff.id
        )
        created.append(batch.id)

        await create_history(
            db,
            staff_id=current_staff.id,
            action_type="BATCH_CREATED",
            entity_type="product_batch",
            entity_id=batch.id,
            message=f"Batch {batch.batch_number}: {batch.quantity} units",
            details={"product_id": item.product_id, "warehouse_id": item.warehouse_id}
        )

    await db.commit()

    return [build_batch_response(await load_batch(db, batch_id)) for batch_id in created]


@router.post("/{batch_id}/adjust", response_model=BatchResponse)
async def adjust_batch(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("batch.edit")),
    batch_id: int,
    adjust_in: BatchAdjust) -> Any:
    """Stock-take: set the counted remaining quantity"""
    batch = await load_batch(db, batch_id)

    old_remaining = batch.remaining
    new_remaining = adjust_in.new_remaining
    if old_remaining == new_remaining:
        raise HTTPException(status_code=400, detail="Quantity unchanged")
    if new_remaining > batch.quantity:
        raise HTTPException(status_code=400, detail="Remaining cannot exceed the received quantity")

    batch.remaining = new_remaining
    batch.update_status()

    line = (
        f"[{datetime.utcnow().strftime('%Y-%m-%d %H:%M')}] Stock-take: "
        f"{old_remaining} -> {new_remaining}, reason: {adjust_in.reason}"
    )
    batch.notes = f"{batch.notes}\n{line}" if batch.notes else line

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="BATCH_ADJUSTED",
        entity_type="product_batch",
        entity_id=batch.id,
        message=adjust_in.reason,
        details={"from": old_remaining, "to": new_remaining}
    )
    await db.commit()

    return build_batch_response(await load_batch(db, batch_id))
