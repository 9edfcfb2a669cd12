from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class PurchaseItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    expiry_date: Optional[datetime] = None


class PurchaseCreate(BaseModel):
    supplier_id: int
    warehouse_id: int
    items: List[PurchaseItemCreate] = Field(..., min_length=1)
    transport_cost: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    other_expenses: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)


class PurchaseReceive(BaseModel):
    """Receiving options; margin sets the selling price over landed cost"""
    margin: Decimal = Field(default=Decimal("0"), ge=0, lt=1000)
    notes: Optional[str] = Field(None, max_length=500)


class PurchaseItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    expiry_date: Optional[datetime] = None


class PurchaseResponse(BaseModel):
    id: int
    purchase_number: str
    supplier_id: int
    supplier_name: str = ""
    warehouse_id: int
    warehouse_name: str = ""
    items: List[PurchaseItemResponse]
    transport_cost: Decimal
    tax: Decimal
    other_expenses: Decimal
    items_total: Decimal
    total_amount: Decimal
    status: str
    purchase_date: Optional[datetime] = None
    received_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PurchaseListResponse(BaseModel):
    data: List[PurchaseResponse]
    total: int
    page: int
    limit: int
