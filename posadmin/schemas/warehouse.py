from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

WarehouseType = Literal["main", "secondary", "cold", "frozen", "distribution"]


class WarehouseBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Warehouse name")
    location: str = Field(..., min_length=2, max_length=200, description="Location")
    description: Optional[str] = Field(None, max_length=500)
    capacity: int = Field(..., gt=0, description="Capacity")
    warehouse_type: WarehouseType = "main"
    manager_id: Optional[int] = None


class WarehouseCreate(WarehouseBase):
    pass


class WarehouseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    location: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    capacity: Optional[int] = Field(None, gt=0)
    warehouse_type: Optional[WarehouseType] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class WarehouseResponse(WarehouseBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WarehouseSimple(BaseModel):
    """Dropdown entry"""
    id: int
    name: str
    location: str

    class Config:
        from_attributes = True


class StockBatchLine(BaseModel):
    id: int
    batch_number: str
    remaining: int
    unit_cost: Decimal
    selling_price: Decimal
    expiry_date: Optional[datetime] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class WarehouseStockGroup(BaseModel):
    """Non-depleted stock of one product in a warehouse"""
    product_id: int
    product_name: str
    sku: Optional[str] = None
    total_quantity: int
    stock_value: Decimal
    batches: List[StockBatchLine]
