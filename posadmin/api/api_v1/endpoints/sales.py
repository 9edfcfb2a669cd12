"""
POS sales API
A sale consumes batches FIFO; the consumed batches are recorded per line
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.warehouses import get_active_warehouse
from posadmin.core.dates import day_range, start_of_day
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Sale, SaleItem, SaleItemBatch, Product, Customer, Staff
from posadmin.schemas.sale import (
    SaleCreate,
    SaleVoid,
    SaleAllocation,
    SaleItemResponse,
    SaleResponse,
    SaleListResponse,
    HourlySales,
    TodaySales)
from posadmin.services.inventory import consume_fifo, restore_allocation
from posadmin.services.pricing import to_decimal, to_money

logger = logging.getLogger(__name__)

router = APIRouter()

# shop hours shown on the hourly chart
BUSINESS_HOURS = range(9, 21)


def hour_label(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}{suffix}"


def build_sale_response(sale: Sale) -> SaleResponse:
    return SaleResponse(
        id=sale.id,
        sale_number=sale.sale_number,
        warehouse_id=sale.warehouse_id,
        warehouse_name=sale.warehouse.name if sale.warehouse else "",
        customer_id=sale.customer_id,
        customer_name=sale.customer_name,
        items=[
            SaleItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else "",
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
                cost_of_goods=item.cost_of_goods,
                profit=to_money(item.profit),
                allocations=[
                    SaleAllocation(
                        batch_id=a.batch_id,
                        batch_number=a.batch.batch_number if a.batch else "",
                        quantity=a.quantity,
                        unit_cost=a.unit_cost or 0,
                        cost_amount=a.cost_amount or 0)
                    for a in item.allocations
                ])
            for item in sale.items
        ],
        subtotal=sale.subtotal,
        discount=sale.discount or 0,
        tax=sale.tax or 0,
        total=sale.total,
        total_revenue=sale.total_revenue,
        total_cost=sale.total_cost,
        profit=sale.profit,
        payment_method=sale.payment_method,
        cash_received=sale.cash_received,
        change_due=sale.change_due,
        is_voided=bool(sale.is_voided),
        void_reason=sale.void_reason,
        voided_at=sale.voided_at,
        notes=sale.notes,
        created_by=sale.created_by,
        created_at=sale.created_at)


async def load_sale(db: AsyncSession, sale_id: int) -> Sale:
    result = await db.execute(
        select(Sale)
        .where(Sale.id == sale_id)
        .execution_options(populate_existing=True)
    )
    sale = result.unique().scalar_one_or_none()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale


async def generate_sale_number(db: AsyncSession) -> str:
    """POS + date + sequence"""
    prefix = f"POS{datetime.utcnow().strftime('%Y%m%d')}"
    result = await db.execute(
        select(func.count(Sale.id)).where(Sale.sale_number.like(f"{prefix}-%"))
    )
    count = result.scalar() or 0
    return f"{prefix}-{count + 1:04d}"


@router.post("/", response_model=SaleResponse)
async def create_sale(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.add")),
    sale_in: SaleCreate) -> Any:
    """
    Process a POS sale

    Every line takes stock from the oldest batches of the sale warehouse.
    Any shortage raises 400 before the commit, so nothing is written.
    """
    await get_active_warehouse(db, sale_in.warehouse_id)

    customer = None
    if sale_in.customer_id:
        customer = await db.get(Customer, sale_in.customer_id)
        if not customer or customer.is_deleted:
            raise HTTPException(status_code=400, detail="Customer not found")

    subtotal = to_money(sum(
        (to_decimal(item.unit_price) * item.quantity for item in sale_in.items),
        Decimal("0")
    ))
    discount = to_money(sale_in.discount)
    tax = to_money(sale_in.tax)
    if discount > subtotal:
        raise HTTPException(status_code=400, detail="Discount cannot exceed the subtotal")
    total = to_money(subtotal - discount + tax)

    cash_received = None
    change_due = None
    if sale_in.payment_method == "cash":
        if sale_in.cash_received is None or to_money(sale_in.cash_received) < total:
            raise HTTPException(status_code=400, detail="Cash received is less than the total")
        cash_received = to_money(sale_in.cash_received)
        change_due = to_money(cash_received - total)

    sale = Sale(
        sale_number=await generate_sale_number(db),
        warehouse_id=sale_in.warehouse_id,
        customer_id=sale_in.customer_id,
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=total,
        total_revenue=subtotal,
        total_cost=Decimal("0.00"),
        profit=Decimal("0.00"),
        payment_method=sale_in.payment_method,
        cash_received=cash_received,
        change_due=change_due,
        is_voided=False,
        notes=sale_in.notes,
        created_by=current_staff.id,
        created_at=datetime.utcnow(),
        items=[]
    )
    db.add(sale)

    total_cost = Decimal("0.00")
    for item_in in sale_in.items:
        product = await db.get(Product, item_in.product_id)
        if not product or product.is_deleted or not product.is_active:
            raise HTTPException(status_code=400, detail=f"Product {item_in.product_id} not found")

        allocations = await consume_fifo(db, item_in.product_id, sale_in.warehouse_id, item_in.quantity)
        cost_of_goods = to_money(sum((a.cost_amount for a in allocations), Decimal("0")))
        total_cost += cost_of_goods

        item = SaleItem(
            product_id=item_in.product_id,
            quantity=item_in.quantity,
            unit_price=to_money(item_in.unit_price),
            total=to_money(to_decimal(item_in.unit_price) * item_in.quantity),
            cost_of_goods=cost_of_goods,
            allocations=[]
        )
        for allocation in allocations:
            link = SaleItemBatch(
                batch=allocation.batch,
                quantity=allocation.quantity,
                unit_cost=allocation.unit_cost
            )
            link.calculate_cost()
            item.allocations.append(link)
        sale.items.append(item)

    sale.total_cost = to_money(total_cost)
    sale.profit = to_money(sale.total_revenue - sale.total_cost)

    if customer:
        customer.loyalty_points = (customer.loyalty_points or 0) + int(total)
        customer.total_spent = to_money(to_decimal(customer.total_spent) + total)
        customer.total_orders = (customer.total_orders or 0) + 1
        customer.last_visit = datetime.utcnow()
        customer.update_tier()

    await db.flush()
    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALE_CREATED",
        entity_type="sale",
        entity_id=sale.id,
        message=f"Sale {sale.sale_number}: {total}",
        details={"items": len(sale_in.items), "payment_method": sale_in.payment_method}
    )
    await db.commit()

    logger.info(f"Sale {sale.sale_number} total={total} cost={sale.total_cost}")
    return build_sale_response(await load_sale(db, sale.id))


@router.get("/", response_model=SaleListResponse)
async def list_sales(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.view")),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    warehouse_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    include_voided: bool = Query(False)) -> Any:
    """Sales, newest first"""
    query = select(Sale)
    if not include_voided:
        query = query.where(Sale.is_voided == False)
    if warehouse_id:
        query = query.where(Sale.warehouse_id == warehouse_id)
    if customer_id:
        query = query.where(Sale.customer_id == customer_id)
    start, end = day_range(start_date, end_date)
    if start:
        query = query.where(Sale.created_at >= start)
    if end:
        query = query.where(Sale.created_at < end)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return SaleListResponse(
        data=[build_sale_response(s) for s in result.unique().scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


def hourly_breakdown(sales: List[Sale]) -> List[HourlySales]:
    buckets = {hour: [Decimal("0.00"), 0] for hour in BUSINESS_HOURS}
    for sale in sales:
        bucket = buckets.get(sale.created_at.hour)
        if bucket is None:
            continue
        bucket[0] += to_decimal(sale.total)
        bucket[1] += 1
    return [
        HourlySales(hour=hour_label(hour), sales=to_money(amount), transactions=count)
        for hour, (amount, count) in buckets.items()
    ]


@router.get("/today", response_model=TodaySales)
async def today_sales(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.view")),
    warehouse_id: Optional[int] = Query(None)) -> Any:
    """Today's totals with the hourly chart"""
    start = start_of_day()
    query = select(Sale).where(
        Sale.is_voided == False,
        Sale.created_at >= start,
        Sale.created_at < start + timedelta(days=1)
    )
    if warehouse_id:
        query = query.where(Sale.warehouse_id == warehouse_id)
    result = await db.execute(query)
    sales = result.unique().scalars().all()

    total_sales = to_money(sum((to_decimal(s.total) for s in sales), Decimal("0")))
    total_profit = to_money(sum((to_decimal(s.profit) for s in sales), Decimal("0")))
    transactions = len(sales)
    hourly = hourly_breakdown(sales)

    peak = max(hourly, key=lambda h: h.sales) if transactions else None

    return TodaySales(
        total_sales=total_sales,
        transactions=transactions,
        average_order_value=to_money(total_sales / transactions) if transactions else Decimal("0.00"),
        total_profit=total_profit,
        hourly=hourly,
        peak_hour=peak.hour if peak and peak.sales > 0 else None
    )


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.view")),
    sale_id: int) -> Any:
    """Sale details with consumed batches"""
    return build_sale_response(await load_sale(db, sale_id))


@router.post("/{sale_id}/void", response_model=SaleResponse)
async def void_sale(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.manage")),
    sale_id: int,
    void_in: SaleVoid) -> Any:
    """Void a sale: consumed units go back to the batches they came from"""
    sale = await load_sale(db, sale_id)
    if sale.is_voided:
        raise HTTPException(status_code=400, detail="Sale already voided")

    restored = 0
    for item in sale.items:
        for allocation in item.allocations:
            restore_allocation(allocation.batch, allocation.quantity)
            restored += allocation.quantity

    if sale.customer_id:
        customer = await db.get(Customer, sale.customer_id)
        if customer:
            customer.loyalty_points = max(0, (customer.loyalty_points or 0) - int(to_decimal(sale.total)))
            customer.total_spent = max(
                Decimal("0.00"),
                to_money(to_decimal(customer.total_spent) - to_decimal(sale.total))
            )
            customer.total_orders = max(0, (customer.total_orders or 0) - 1)
            customer.update_tier()

    sale.is_voided = True
    sale.void_reason = void_in.reason
    sale.voided_at = datetime.utcnow()
    sale.voided_by = current_staff.id

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALE_VOIDED",
        entity_type="sale",
        entity_id=sale.id,
        message=void_in.reason,
        details={"sale_number": sale.sale_number, "restored_units": restored}
    )
    await db.commit()

    return build_sale_response(await load_sale(db, sale_id))
