"""
Purchase order API
Receiving a purchase turns every line into a product batch at landed cost
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.warehouses import get_active_warehouse
from posadmin.core.dates import day_range, start_of_day, start_of_month
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Purchase, PurchaseItem, Product, Supplier, Staff
from posadmin.schemas.purchase import (
    PurchaseCreate,
    PurchaseReceive,
    PurchaseItemResponse,
    PurchaseResponse,
    PurchaseListResponse)
from posadmin.schemas.analytics import PurchaseStats
from posadmin.services.inventory import create_batch
from posadmin.services.pricing import to_money, allocate_extra_costs

router = APIRouter()


def build_purchase_response(purchase: Purchase) -> PurchaseResponse:
    return PurchaseResponse(
        id=purchase.id,
        purchase_number=purchase.purchase_number,
        supplier_id=purchase.supplier_id,
        supplier_name=purchase.supplier.name if purchase.supplier else "",
        warehouse_id=purchase.warehouse_id,
        warehouse_name=purchase.warehouse.name if purchase.warehouse else "",
        items=[
            PurchaseItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else "",
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=to_money(item.line_total),
                expiry_date=item.expiry_date)
            for item in purchase.items
        ],
        transport_cost=purchase.transport_cost or 0,
        tax=purchase.tax or 0,
        other_expenses=purchase.other_expenses or 0,
        items_total=to_money(purchase.items_total),
        total_amount=to_money(purchase.total_amount),
        status=purchase.status,
        purchase_date=purchase.purchase_date,
        received_at=purchase.received_at,
        notes=purchase.notes,
        created_at=purchase.created_at,
        updated_at=purchase.updated_at)


async def load_purchase(db: AsyncSession, purchase_id: int) -> Purchase:
    result = await db.execute(
        select(Purchase)
        .where(Purchase.id == purchase_id)
        .execution_options(populate_existing=True)
    )
    purchase = result.unique().scalar_one_or_none()
    if not purchase:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return purchase


async def generate_purchase_number(db: AsyncSession) -> str:
    """PO + date + sequence"""
    prefix = f"PO{datetime.utcnow().strftime('%Y%m%d')}"
    result = await db.execute(
        select(func.count(Purchase.id)).where(Purchase.purchase_number.like(f"{prefix}-%"))
    )
    count = result.scalar() or 0
    return f"{prefix}-{count + 1:03d}"


@router.get("/", response_model=PurchaseListResponse)
async def list_purchases(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.view")),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, description="ordered/received/cancelled"),
    supplier_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD")) -> Any:
    """Purchase list, newest first"""
    query = select(Purchase)
    if status:
        query = query.where(Purchase.status == status)
    if supplier_id:
        query = query.where(Purchase.supplier_id == supplier_id)
    if warehouse_id:
        query = query.where(Purchase.warehouse_id == warehouse_id)
    start, end = day_range(start_date, end_date)
    if start:
        query = query.where(Purchase.purchase_date >= start)
    if end:
        query = query.where(Purchase.purchase_date < end)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    purchases = result.unique().scalars().all()

    return PurchaseListResponse(
        data=[build_purchase_response(p) for p in purchases],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=PurchaseResponse)
async def create_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.add")),
    purchase_in: PurchaseCreate) -> Any:
    """Place a purchase order"""
    supplier = await db.get(Supplier, purchase_in.supplier_id)
    if not supplier or supplier.is_deleted:
        raise HTTPException(status_code=400, detail="Supplier not found")
    await get_active_warehouse(db, purchase_in.warehouse_id)

    for item_in in purchase_in.items:
        product = await db.get(Product, item_in.product_id)
        if not product or product.is_deleted:
            raise HTTPException(status_code=400, detail=f"Product {item_in.product_id} not found")

    purchase = Purchase(
        purchase_number=await generate_purchase_number(db),
        supplier_id=purchase_in.supplier_id,
        warehouse_id=purchase_in.warehouse_id,
        transport_cost=to_money(purchase_in.transport_cost),
        tax=to_money(purchase_in.tax),
        other_expenses=to_money(purchase_in.other_expenses),
        status="ordered",
        purchase_date=purchase_in.purchase_date or datetime.utcnow(),
        notes=purchase_in.notes,
        created_by=current_staff.id
    )
    purchase.items = [
        PurchaseItem(
            product_id=item_in.product_id,
            quantity=item_in.quantity,
            unit_price=to_money(item_in.unit_price),
            expiry_date=item_in.expiry_date)
        for item_in in purchase_in.items
    ]
    db.add(purchase)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PURCHASE_CREATED",
        entity_type="purchase",
        entity_id=purchase.id,
        message=f"Purchase {purchase.purchase_number} from {supplier.name}"
    )
    await db.commit()

    return build_purchase_response(await load_purchase(db, purchase.id))


@router.get("/stats", response_model=PurchaseStats)
async def get_purchase_stats(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.view"))) -> Any:
    """Purchase dashboard counters; cancelled orders are not spending"""
    today = start_of_day()
    month_start = start_of_month()
    purchases = (await db.execute(select(Purchase))).unique().scalars().all()

    def spent(rows) -> Decimal:
        return to_money(sum((p.total_amount for p in rows), Decimal("0")))

    live = [p for p in purchases if p.status != "cancelled"]
    today_rows = [p for p in live if p.purchase_date and p.purchase_date >= today]
    month_rows = [p for p in live if p.purchase_date and p.purchase_date >= month_start]
    total_spent = spent(live)

    return PurchaseStats(
        today_spent=spent(today_rows),
        today_orders=len(today_rows),
        month_spent=spent(month_rows),
        month_orders=len(month_rows),
        total_spent=total_spent,
        total_orders=len(live),
        pending_orders=sum(1 for p in purchases if p.status == "ordered"),
        received_orders=sum(1 for p in purchases if p.status == "received"),
        cancelled_orders=sum(1 for p in purchases if p.status == "cancelled"),
        avg_order_value=to_money(total_spent / len(live)) if live else Decimal("0.00")
    )


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.view")),
    purchase_id: int) -> Any:
    """Purchase details"""
    return build_purchase_response(await load_purchase(db, purchase_id))


@router.post("/{purchase_id}/receive", response_model=PurchaseResponse)
async def receive_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.manage")),
    purchase_id: int,
    receive_in: Optional[PurchaseReceive] = None) -> Any:
    """
    Receive the goods

    Each line becomes a batch in the purchase warehouse. Transport, tax and
    other expenses are spread over the lines by value and carried on the
    batch as additional expenses, so the batch's landed unit cost includes
    them. Supplier counters are updated in the same commit.
    """
    receive_in = receive_in or PurchaseReceive()
    purchase = await load_purchase(db, purchase_id)
    if purchase.status == "received":
        raise HTTPException(status_code=400, detail="Purchase already received")
    if purchase.status != "ordered":
        raise HTTPException(status_code=400, detail=f"Cannot receive a {purchase.status} purchase")

    items = list(purchase.items)
    shares = allocate_extra_costs([item.line_total for item in items], purchase.extra_costs)

    batch_numbers = []
    for item, share in zip(items, shares):
        batch = await create_batch(
            db,
            product_id=item.product_id,
            warehouse_id=purchase.warehouse_id,
            supplier_id=purchase.supplier_id,
            purchase_id=purchase.id,
            unit_cost=item.unit_price,
            quantity=item.quantity,
            additional_expenses=share,
            margin=receive_in.margin,
            expiry_date=item.expiry_date,
            notes=receive_in.notes,
            created_by=current_staff.id
        )
        batch_numbers.append(batch.batch_number)

    total_amount = to_money(purchase.total_amount)
    supplier = await db.get(Supplier, purchase.supplier_id)
    supplier.total_orders = (supplier.total_orders or 0) + 1
    supplier.total_spent = to_money(Decimal(str(supplier.total_spent or 0)) + total_amount)
    supplier.last_order_date = datetime.utcnow()

    purchase.status = "received"
    purchase.received_at = datetime.utcnow()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PURCHASE_RECEIVED",
        entity_type="purchase",
        entity_id=purchase.id,
        message=f"Received purchase {purchase.purchase_number}",
        details={"batches": batch_numbers, "total_amount": str(total_amount)}
    )
    await db.commit()

    return build_purchase_response(await load_purchase(db, purchase_id))


@router.post("/{purchase_id}/cancel", response_model=PurchaseResponse)
async def cancel_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("purchase.manage")),
    purchase_id: int) -> Any:
    """Cancel an order that has not been received"""
    purchase = await load_purchase(db, purchase_id)
    if purchase.status != "ordered":
        raise HTTPException(status_code=400, detail="Only ordered purchases can be cancelled")

    purchase.status = "cancelled"
    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PURCHASE_CANCELLED",
        entity_type="purchase",
        entity_id=purchase.id,
        message=f"Cancelled purchase {purchase.purchase_number}"
    )
    await db.commit()

    return build_purchase_response(await load_purchase(db, purchase_id))
