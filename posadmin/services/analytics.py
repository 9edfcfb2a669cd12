"""
Warehouse analytics
Pure calculations over batches and sold quantities; the router does the querying
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from posadmin.services.pricing import to_decimal, to_money

CRITICAL_DAYS = 7
WARNING_DAYS = 14
LOW_MARGIN_PERCENT = Decimal("10")


def expiry_urgency(days_to_expiry: int) -> str:
    if days_to_expiry <= CRITICAL_DAYS:
        return "critical"
    if days_to_expiry <= WARNING_DAYS:
        return "warning"
    return "info"


def turnover_rate(sold: int, stock: int) -> Decimal:
    """Share of the units on hand during the period that were sold"""
    if sold + stock <= 0:
        return Decimal("0.00")
    return to_money(Decimal(sold) / Decimal(sold + stock) * 100)


def batch_row(batch) -> dict:
    return {
        "batch_id": batch.id,
        "batch_number": batch.batch_number,
        "product_id": batch.product_id,
        "product_name": batch.product.name if batch.product else "",
        "sku": batch.product.sku if batch.product else None,
        "quantity": batch.remaining or 0,
        "selling_price": to_money(batch.selling_price),
        "total_value": to_money(to_decimal(batch.selling_price) * (batch.remaining or 0)),
        "expiry_date": batch.expiry_date,
    }


def expiry_alerts(batches, now: datetime) -> List[dict]:
    """Batches expiring from now on, soonest first, each with its urgency"""
    rows = []
    for batch in batches:
        if not batch.expiry_date or batch.expiry_date < now or not batch.remaining:
            continue
        days = (batch.expiry_date - now).days
        row = batch_row(batch)
        row.update(days_to_expiry=days, urgency=expiry_urgency(days))
        rows.append(row)
    rows.sort(key=lambda r: (r["days_to_expiry"], r["batch_id"]))
    return rows


def slow_moving(batches, now: datetime) -> List[dict]:
    """Batches still holding stock, longest in stock first"""
    rows = []
    for batch in batches:
        if not batch.remaining:
            continue
        row = batch_row(batch)
        row["days_in_stock"] = (now - batch.created_at).days
        rows.append(row)
    rows.sort(key=lambda r: (-r["days_in_stock"], r["batch_id"]))
    return rows


def turnover(sold: Dict[int, dict], stock: Dict[int, int]) -> List[dict]:
    """
    Turnover per product sold in the period, fastest first

    `sold` maps product id to {"name", "quantity", "revenue"}; `stock` maps
    product id to the units still on hand.
    """
    rows = []
    for product_id, entry in sold.items():
        on_hand = stock.get(product_id, 0)
        rows.append({
            "product_id": product_id,
            "product_name": entry["name"],
            "sold_quantity": entry["quantity"],
            "revenue": to_money(entry["revenue"]),
            "current_stock": on_hand,
            "turnover_rate": turnover_rate(entry["quantity"], on_hand),
        })
    rows.sort(key=lambda r: (-r["turnover_rate"], r["product_id"]))
    return rows


def profitability(batches) -> List[dict]:
    """Margin of each batch at landed cost, best first"""
    rows = []
    for batch in batches:
        cost = batch.landed_unit_cost
        price = to_decimal(batch.selling_price)
        rows.append({
            "batch_id": batch.id,
            "batch_number": batch.batch_number,
            "product_id": batch.product_id,
            "product_name": batch.product.name if batch.product else "",
            "quantity": batch.remaining or 0,
            "unit_cost": cost,
            "selling_price": to_money(price),
            "margin_percent": batch.margin_percent,
            "potential_profit": to_money((price - cost) * (batch.remaining or 0)),
        })
    rows.sort(key=lambda r: (-r["margin_percent"], r["batch_id"]))
    return rows


def average(values) -> Decimal:
    values = list(values)
    if not values:
        return Decimal("0.00")
    return to_money(sum(values, Decimal("0")) / len(values))
