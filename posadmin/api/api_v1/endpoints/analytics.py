"""
Warehouse analytics API
Expiry alerts, turnover, slow-moving stock and batch profitability per warehouse
"""
from datetime import datetime, timedelta
from typing import Any, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.warehouses import get_active_warehouse
from posadmin.core.deps import get_db, require_permission
from posadmin.models import ProductBatch, Sale, SaleItem, Staff
from posadmin.schemas.analytics import (
    ExpiryAlert,
    SlowMovingBatch,
    TurnoverRow,
    ProfitabilityRow,
    AnalyticsSummaryNumbers,
    WarehouseAnalyticsSummary)
from posadmin.services import analytics
from posadmin.services.pricing import to_decimal, to_money

router = APIRouter()


async def stocked_batches(db: AsyncSession, warehouse_id: int) -> List[ProductBatch]:
    result = await db.execute(
        select(ProductBatch).where(
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.is_depleted == False,
            ProductBatch.remaining > 0
        ).order_by(ProductBatch.id)
    )
    return result.unique().scalars().all()


async def expiry_rows(db: AsyncSession, warehouse_id: int, days: int, now: datetime) -> List[dict]:
    result = await db.execute(
        select(ProductBatch).where(
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.is_depleted == False,
            ProductBatch.remaining > 0,
            ProductBatch.expiry_date.isnot(None),
            ProductBatch.expiry_date >= now,
            ProductBatch.expiry_date <= now + timedelta(days=days)
        )
    )
    return analytics.expiry_alerts(result.unique().scalars().all(), now)


async def slow_moving_rows(db: AsyncSession, warehouse_id: int, days: int, now: datetime) -> List[dict]:
    result = await db.execute(
        select(ProductBatch).where(
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.is_depleted == False,
            ProductBatch.remaining > 0,
            ProductBatch.created_at <= now - timedelta(days=days)
        )
    )
    return analytics.slow_moving(result.unique().scalars().all(), now)


async def turnover_rows(db: AsyncSession, warehouse_id: int, days: int, now: datetime) -> List[dict]:
    result = await db.execute(
        select(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(
            Sale.warehouse_id == warehouse_id,
            Sale.is_voided == False,
            Sale.created_at >= now - timedelta(days=days)
        )
    )
    sold = {}
    for item in result.unique().scalars().all():
        entry = sold.setdefault(item.product_id, {
            "name": item.product.name if item.product else "",
            "quantity": 0,
            "revenue": to_decimal(0),
        })
        entry["quantity"] += item.quantity
        entry["revenue"] += to_decimal(item.total)

    stock = {}
    for batch in await stocked_batches(db, warehouse_id):
        stock[batch.product_id] = stock.get(batch.product_id, 0) + batch.remaining
    return analytics.turnover(sold, stock)


async def profitability_rows(db: AsyncSession, warehouse_id: int, days: int, now: datetime) -> List[dict]:
    result = await db.execute(
        select(ProductBatch).where(
            ProductBatch.warehouse_id == warehouse_id,
            ProductBatch.created_at >= now - timedelta(days=days)
        )
    )
    return analytics.profitability(result.unique().scalars().all())


@router.get("/warehouses/{warehouse_id}/expiry-alerts")
async def get_expiry_alerts(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    warehouse_id: int,
    days: int = Query(30, ge=1, le=365, description="Look-ahead window")) -> List[ExpiryAlert]:
    """Batches expiring within `days`, soonest first"""
    await get_active_warehouse(db, warehouse_id)
    rows = await expiry_rows(db, warehouse_id, days, datetime.utcnow())
    return [ExpiryAlert(**row) for row in rows]


@router.get("/warehouses/{warehouse_id}/slow-moving")
async def get_slow_moving(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    warehouse_id: int,
    days: int = Query(60, ge=0, le=3650, description="Minimum days in stock")) -> List[SlowMovingBatch]:
    """Batches in stock for at least `days` days, oldest first"""
    await get_active_warehouse(db, warehouse_id)
    rows = await slow_moving_rows(db, warehouse_id, days, datetime.utcnow())
    return [SlowMovingBatch(**row) for row in rows]


@router.get("/warehouses/{warehouse_id}/turnover")
async def get_turnover(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    warehouse_id: int,
    days: int = Query(30, ge=1, le=365)) -> List[TurnoverRow]:
    """Sold / (sold + on hand) per product over the last `days` days"""
    await get_active_warehouse(db, warehouse_id)
    rows = await turnover_rows(db, warehouse_id, days, datetime.utcnow())
    return [TurnoverRow(**row) for row in rows]


@router.get("/warehouses/{warehouse_id}/profitability")
async def get_profitability(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    warehouse_id: int,
    days: int = Query(30, ge=1, le=365)) -> List[ProfitabilityRow]:
    """Margins of the batches received in the last `days` days"""
    await get_active_warehouse(db, warehouse_id)
    rows = await profitability_rows(db, warehouse_id, days, datetime.utcnow())
    return [ProfitabilityRow(**row) for row in rows]


@router.get("/warehouses/{warehouse_id}/summary", response_model=WarehouseAnalyticsSummary)
async def get_summary(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    warehouse_id: int) -> Any:
    """30-day turnover and margins, 60-day slow movers, 30-day expiry window"""
    await get_active_warehouse(db, warehouse_id)
    now = datetime.utcnow()
    turnover = await turnover_rows(db, warehouse_id, 30, now)
    margins = await profitability_rows(db, warehouse_id, 30, now)
    slow = await slow_moving_rows(db, warehouse_id, 60, now)
    expiring = await expiry_rows(db, warehouse_id, 30, now)
    critical = [row for row in expiring if row["urgency"] == "critical"]

    return WarehouseAnalyticsSummary(
        warehouse_id=warehouse_id,
        summary=AnalyticsSummaryNumbers(
            total_products=len({r["product_id"] for r in turnover} | {r["product_id"] for r in margins}),
            avg_turnover_rate=analytics.average(r["turnover_rate"] for r in turnover),
            avg_margin=analytics.average(r["margin_percent"] for r in margins),
            slow_moving_value=to_money(sum((r["total_value"] for r in slow), to_decimal(0))),
            critical_expiry_count=len(critical)
        ),
        top_performers=[TurnoverRow(**r) for r in turnover[:5]],
        low_performers=[
            ProfitabilityRow(**r) for r in margins if r["margin_percent"] < analytics.LOW_MARGIN_PERCENT
        ][:5],
        slow_moving=[SlowMovingBatch(**r) for r in slow[:5]],
        expiring=[ExpiryAlert(**r) for r in critical[:5]]
    )
