from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class StockTransferItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)


class StockTransferCreate(BaseModel):
    from_warehouse_id: int
    to_warehouse_id: int
    items: List[StockTransferItemCreate] = Field(..., min_length=1)
    reason: str = Field(..., min_length=2, max_length=500, description="Why the stock moves")
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def different_warehouses(self):
        if self.from_warehouse_id == self.to_warehouse_id:
            raise ValueError("Source and destination warehouse must differ")
        return self


class StockTransferApprove(BaseModel):
    transport_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=500)


class StockTransferItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    product_sku: Optional[str] = None
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal


class StockTransferResponse(BaseModel):
    id: int
    transfer_number: str
    from_warehouse_id: int
    from_warehouse_name: str = ""
    to_warehouse_id: int
    to_warehouse_name: str = ""
    items: List[StockTransferItemResponse]
    total_quantity: int
    total_value: Decimal
    status: str
    reason: str
    notes: Optional[str] = None
    requested_by: Optional[int] = None
    requested_by_name: str = ""
    approved_by: Optional[int] = None
    approved_by_name: str = ""
    shipment_id: Optional[int] = None
    transfer_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
