"""
Inventory operations on product batches
FIFO consumption, restoring consumed stock, batch creation and stock summaries.
None of these commit; the calling endpoint commits once.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.models import ProductBatch, Product
from posadmin.services.pricing import to_decimal, to_money, selling_price as price_with_margin

logger = logging.getLogger(__name__)


class BatchAllocation(NamedTuple):
    batch: ProductBatch
    quantity: int
    unit_cost: Decimal

    @property
    def cost_amount(self) -> Decimal:
        return to_money(self.unit_cost * self.quantity)


async def generate_batch_number(db: AsyncSession) -> str:
    """Batch number: BN + date + sequence"""
    today = datetime.utcnow().strftime("%Y%m%d")
    prefix = f"BN{today}"

    result = await db.execute(
        select(func.count(ProductBatch.id)).where(
            ProductBatch.batch_number.like(f"{prefix}-%")
        )
    )
    count = result.scalar() or 0

    return f"{prefix}-{count + 1:03d}"


async def available_batches(
    db: AsyncSession,
    product_id: int,
    warehouse_id: int
) -> List[ProductBatch]:
    """Non-depleted batches of a product in a warehouse, oldest first"""
    result = await db.execute(
        select(ProductBatch)
        .where(
            ProductBatch.product_id == product_id,
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.is_depleted == False,
            ProductBatch.remaining > 0
        )
        .order_by(ProductBatch.created_at.asc(), ProductBatch.id.asc())
    )
    return list(result.scalars().all())


async def consume_fifo(
    db: AsyncSession,
    product_id: int,
    warehouse_id: int,
    quantity: int
) -> List[BatchAllocation]:
    """
    Take `quantity` units from the oldest batches first (FIFO)

    Availability is checked before any batch is touched, so a shortfall
    raises 400 without changing anything.
    """
    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")

    batches = await available_batches(db, product_id, warehouse_id)
    available = sum(batch.remaining for batch in batches)
    if available < quantity:
        logger.info(
            f"Insufficient stock: product={product_id} warehouse={warehouse_id} "
            f"needed={quantity} available={available}"
        )
        raise HTTPException(status_code=400, detail=f"Insufficient stock for product {product_id}")

    allocations = []
    needed = quantity
    for batch in batches:
        if needed <= 0:
            break
        take = min(batch.remaining, needed)
        unit_cost = batch.landed_unit_cost
        batch.remaining -= take
        batch.update_status()
        allocations.append(BatchAllocation(batch=batch, quantity=take, unit_cost=unit_cost))
        needed -= take

    # later queries in this transaction must see the new remaining values
    await db.flush()
    return allocations


def restore_allocation(batch: ProductBatch, quantity: int) -> None:
    """Put consumed units back on the batch they came from"""
    batch.remaining = (batch.remaining or 0) + quantity
    batch.update_status()


async def create_batch(
    db: AsyncSession,
    *,
    product_id: int,
    warehouse_id: int,
    unit_cost,
    quantity: int,
    selling_price=None,
    margin=None,
    additional_expenses=0,
    expiry_date: Optional[datetime] = None,
    supplier_id: Optional[int] = None,
    purchase_id: Optional[int] = None,
    transfer_id: Optional[int] = None,
    batch_number: Optional[str] = None,
    notes: Optional[str] = None,
    created_by: Optional[int] = None
) -> ProductBatch:
    """
    Create a batch and flush it so the next generated number sees it

    The selling price is taken as given; otherwise it is the landed unit
    cost plus `margin` percent (0 when no margin is given).
    """
    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")

    if not batch_number:
        batch_number = await generate_batch_number(db)
    else:
        existing = await db.execute(
            select(ProductBatch.id).where(ProductBatch.batch_number == batch_number)
        )
        if existing.scalar():
            raise HTTPException(status_code=400, detail=f"Batch number {batch_number} already exists")

    batch = ProductBatch(
        batch_number=batch_number,
        product_id=product_id,
        warehouse_id=warehouse_id,
        supplier_id=supplier_id,
        purchase_id=purchase_id,
        transfer_id=transfer_id,
        unit_cost=to_money(unit_cost),
        additional_expenses=to_money(additional_expenses),
        selling_price=Decimal("0.00"),
        quantity=quantity,
        remaining=quantity,
        status="in_stock",
        is_depleted=False,
        expiry_date=expiry_date,
        notes=notes,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )
    if selling_price is not None:
        batch.selling_price = to_money(selling_price)
    else:
        batch.selling_price = price_with_margin(batch.landed_unit_cost, margin or 0)

    db.add(batch)
    await db.flush()
    return batch


def stock_values(batches) -> Tuple[Decimal, Decimal]:
    """(value at landed cost, value at selling price) of the remaining units"""
    at_cost = Decimal("0")
    at_price = Decimal("0")
    for batch in batches:
        at_cost += batch.stock_value
        at_price += to_decimal(batch.selling_price) * (batch.remaining or 0)
    return to_money(at_cost), to_money(at_price)


async def stock_by_product(
    db: AsyncSession,
    warehouse_id: Optional[int] = None
) -> Dict[int, dict]:
    """
    product_id -> {stock, average_price, stock_value_cost, stock_value_price}
    over non-depleted batches; cost is the landed cost
    """
    query = select(ProductBatch).where(ProductBatch.is_depleted == False)
    if warehouse_id:
        query = query.where(ProductBatch.warehouse_id == warehouse_id)
    batches = (await db.execute(query)).unique().scalars().all()

    by_product: Dict[int, List[ProductBatch]] = {}
    for batch in batches:
        by_product.setdefault(batch.product_id, []).append(batch)

    summary = {}
    for product_id, product_batches in by_product.items():
        value_cost, value_price = stock_values(product_batches)
        prices = [to_decimal(b.selling_price) for b in product_batches]
        summary[product_id] = {
            "stock": sum(b.remaining or 0 for b in product_batches),
            "average_price": to_money(sum(prices, Decimal("0")) / len(prices)),
            "stock_value_cost": value_cost,
            "stock_value_price": value_price,
        }
    return summary


async def warehouse_stock_summary(db: AsyncSession, warehouse_id: int) -> List[dict]:
    """Non-depleted batches of a warehouse grouped by product"""
    result = await db.execute(
        select(ProductBatch)
        .where(
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.is_depleted == False
        )
        .order_by(ProductBatch.product_id, ProductBatch.created_at.asc(), ProductBatch.id.asc())
    )
    groups: Dict[int, dict] = {}
    for batch in result.scalars().all():
        group = groups.get(batch.product_id)
        if group is None:
            product: Product = batch.product
            group = groups[batch.product_id] = {
                "product_id": batch.product_id,
                "product_name": product.name if product else "",
                "sku": product.sku if product else None,
                "total_quantity": 0,
                "stock_value": Decimal("0.00"),
                "batches": [],
            }
        group["total_quantity"] += batch.remaining
        group["stock_value"] += batch.stock_value
        group["batches"].append(batch)
    return list(groups.values())


async def mark_expired_batches(db: AsyncSession) -> int:
    """Flag in-stock batches past their expiry date; returns how many changed"""
    now = datetime.utcnow()
    result = await db.execute(
        select(ProductBatch).where(
            ProductBatch.expiry_date != None,
            ProductBatch.expiry_date < now,
            ProductBatch.remaining > 0,
            ProductBatch.status == "in_stock"
        )
    )
    batches = result.scalars().all()
    for batch in batches:
        batch.status = "expired"
    return len(batches)


def weighted_unit_value(allocations: List[BatchAllocation], attr: str = "selling_price") -> Decimal:
    """Quantity-weighted average of a batch attribute over allocations"""
    total_qty = sum(a.quantity for a in allocations)
    if not total_qty:
        return Decimal("0.00")
    total = sum((to_decimal(getattr(a.batch, attr)) * a.quantity for a in allocations), Decimal("0"))
    return to_money(total / total_qty)
