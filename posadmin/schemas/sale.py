"""POS sale schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

PaymentMethod = Literal["cash", "card", "mobile"]


class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, description="Unit selling price")


class SaleCreate(BaseModel):
    warehouse_id: int
    customer_id: Optional[int] = None
    items: List[SaleItemCreate] = Field(..., min_length=1)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    payment_method: PaymentMethod = "cash"
    cash_received: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class SaleVoid(BaseModel):
    reason: str = Field(..., min_length=2, max_length=200)


class SaleAllocation(BaseModel):
    batch_id: int
    batch_number: str = ""
    quantity: int
    unit_cost: Decimal
    cost_amount: Decimal


class SaleItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    quantity: int
    unit_price: Decimal
    total: Decimal
    cost_of_goods: Decimal
    profit: Decimal
    allocations: List[SaleAllocation] = []


class SaleResponse(BaseModel):
    id: int
    sale_number: str
    warehouse_id: int
    warehouse_name: str = ""
    customer_id: Optional[int] = None
    customer_name: str = ""
    items: List[SaleItemResponse]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    total_revenue: Decimal
    total_cost: Decimal
    profit: Decimal
    payment_method: str
    cash_received: Optional[Decimal] = None
    change_due: Optional[Decimal] = None
    is_voided: bool
    void_reason: Optional[str] = None
    voided_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime


class SaleListResponse(BaseModel):
    data: List[SaleResponse]
    total: int
    page: int
    limit: int


class HourlySales(BaseModel):
    hour: str
    sales: Decimal
    transactions: int


class TodaySales(BaseModel):
    total_sales: Decimal
    transactions: int
    average_order_value: Decimal
    total_profit: Decimal
    hourly: List[HourlySales]
    peak_hour: Optional[str] = None
