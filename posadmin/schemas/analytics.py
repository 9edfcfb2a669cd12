"""Warehouse analytics and purchase dashboard schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel


class BatchStockRow(BaseModel):
    batch_id: int
    batch_number: str
    product_id: int
    product_name: str
    sku: Optional[str] = None
    quantity: int
    selling_price: Decimal
    total_value: Decimal
    expiry_date: Optional[datetime] = None


class ExpiryAlert(BatchStockRow):
    days_to_expiry: int
    urgency: str


class SlowMovingBatch(BatchStockRow):
    days_in_stock: int


class TurnoverRow(BaseModel):
    product_id: int
    product_name: str
    sold_quantity: int
    revenue: Decimal
    current_stock: int
    turnover_rate: Decimal


class ProfitabilityRow(BaseModel):
    batch_id: int
    batch_number: str
    product_id: int
    product_name: str
    quantity: int
    unit_cost: Decimal
    selling_price: Decimal
    margin_percent: Decimal
    potential_profit: Decimal


class AnalyticsSummaryNumbers(BaseModel):
    total_products: int
    avg_turnover_rate: Decimal
    avg_margin: Decimal
    slow_moving_value: Decimal
    critical_expiry_count: int


class WarehouseAnalyticsSummary(BaseModel):
    warehouse_id: int
    summary: AnalyticsSummaryNumbers
    top_performers: List[TurnoverRow]
    low_performers: List[ProfitabilityRow]
    slow_moving: List[SlowMovingBatch]
    expiring: List[ExpiryAlert]


class PurchaseStats(BaseModel):
    today_spent: Decimal
    today_orders: int
    month_spent: Decimal
    month_orders: int
    total_spent: Decimal
    total_orders: int
    pending_orders: int
    received_orders: int
    cancelled_orders: int
    avg_order_value: Decimal
