"""Product batch schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


# ===== Batch =====
class BatchItemCreate(BaseModel):
    """One stock line; selling_price wins over margin when both are given"""
    product_id: int = Field(..., description="Product")
    warehouse_id: int = Field(..., description="Warehouse")
    supplier_id: Optional[int] = None
    unit_cost: Decimal = Field(..., ge=0, description="Unit cost")
    quantity: int = Field(..., gt=0, description="Quantity")
    additional_expenses: Decimal = Field(default=Decimal("0"), ge=0, description="Extra expenses for the whole line")
    selling_price: Optional[Decimal] = Field(None, ge=0)
    margin: Optional[Decimal] = Field(None, ge=0, lt=1000, description="Margin % over landed cost")
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)


class BatchCreate(BaseModel):
    items: List[BatchItemCreate] = Field(..., min_length=1)


class BatchAdjust(BaseModel):
    """Stock-take"""
    new_remaining: int = Field(..., ge=0, description="Counted quantity")
    reason: str = Field(..., min_length=2, max_length=200, description="Reason")


class StockDeduct(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = Field(None, max_length=200)


class BatchResponse(BaseModel):
    id: int
    batch_number: str
    product_id: int
    product_name: str = ""
    product_sku: Optional[str] = None
    warehouse_id: int
    warehouse_name: str = ""
    supplier_id: Optional[int] = None
    supplier_name: str = ""
    purchase_id: Optional[int] = None
    transfer_id: Optional[int] = None

    unit_cost: Decimal
    additional_expenses: Decimal
    landed_unit_cost: Decimal
    selling_price: Decimal
    margin_percent: Decimal
    markup_percent: Decimal

    quantity: int
    remaining: int
    stock_value: Decimal

    status: str
    status_display: str = ""
    is_depleted: bool
    depleted_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BatchListResponse(BaseModel):
    data: List[BatchResponse]
    total: int
    page: int
    limit: int


class AllocationLine(BaseModel):
    batch_id: int
    batch_number: str
    quantity: int
    unit_cost: Decimal
    cost_amount: Decimal


class DeductResponse(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int
    total_cost: Decimal
    allocations: List[AllocationLine]


# ===== Pricing calculator =====
class PricingQuery(BaseModel):
    cost: Decimal = Field(..., ge=0)
    margin: Optional[Decimal] = Field(None, ge=0, lt=1000)
    selling_price: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def need_price_or_margin(self):
        if self.margin is None and self.selling_price is None:
            raise ValueError("margin or selling_price is required")
        return self


class PricingResult(BaseModel):
    cost: Decimal
    selling_price: Decimal
    margin_percent: Decimal
    markup_percent: Decimal
    profit_per_unit: Decimal
