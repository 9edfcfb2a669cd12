"""Shipment schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator

ShipmentStatus = Literal["pending", "in-transit", "delivered", "delayed", "damaged", "cancelled"]
ShipmentPriority = Literal["low", "medium", "high", "urgent"]
ItemCondition = Literal["good", "damaged", "expired"]


class ShipmentItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    batch_number: Optional[str] = Field(None, max_length=80)
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=200)


class ShipmentCreate(BaseModel):
    origin_warehouse_id: int
    destination_warehouse_id: int
    transport_id: int
    items: List[ShipmentItemCreate] = Field(..., min_length=1)
    priority: ShipmentPriority = "medium"
    scheduled_pickup_date: Optional[datetime] = None
    estimated_delivery_date: Optional[datetime] = None
    temperature_required: bool = False
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    insurance_required: bool = False
    insurance_value: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_route(self):
        if self.origin_warehouse_id == self.destination_warehouse_id:
            raise ValueError("Origin and destination warehouse must differ")
        if (
            self.min_temperature is not None
            and self.max_temperature is not None
            and self.min_temperature > self.max_temperature
        ):
            raise ValueError("min_temperature cannot exceed max_temperature")
        return self


class ShipmentStatusUpdate(BaseModel):
    status: ShipmentStatus
    delivery_notes: Optional[str] = Field(None, max_length=2000)


class ShipmentLocationUpdate(BaseModel):
    address: str = Field(..., min_length=2, max_length=200)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class QualityCheckCreate(BaseModel):
    results: str = Field(..., min_length=2, max_length=2000)
    issues: List[str] = Field(default_factory=list)
    approved: bool


class ReceiveItem(BaseModel):
    item_id: int = Field(..., description="Shipment item")
    received_quantity: int = Field(..., ge=0)
    condition: ItemCondition = "good"
    unit_cost: Optional[Decimal] = Field(None, ge=0, description="Overrides the shipped unit price")
    margin: Optional[Decimal] = Field(None, ge=0, lt=1000)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=200)


class ShipmentReceive(BaseModel):
    items: List[ReceiveItem] = Field(..., min_length=1)
    delivery_notes: Optional[str] = Field(None, max_length=2000)


class ShipmentItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    quantity: int
    unit_price: Decimal
    total_value: Decimal
    batch_number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    condition: Optional[str] = None
    received_quantity: Optional[int] = None
    notes: Optional[str] = None


class ShipmentResponse(BaseModel):
    id: int
    shipment_number: str
    tracking_number: str
    origin_warehouse_id: int
    origin_warehouse_name: str = ""
    destination_warehouse_id: int
    destination_warehouse_name: str = ""
    transport_id: Optional[int] = None
    transport_name: str = ""
    stock_transfer_id: Optional[int] = None
    driver_name: Optional[str] = None
    driver_contact: Optional[str] = None
    items: List[ShipmentItemResponse]
    total_value: Decimal
    status: str
    priority: str
    scheduled_pickup_date: Optional[datetime] = None
    actual_pickup_date: Optional[datetime] = None
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    temperature_required: bool = False
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    insurance_required: bool = False
    insurance_value: Optional[Decimal] = None
    current_location: Optional[dict] = None
    location_history: List[dict] = []
    quality_check: Optional[dict] = None
    notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ShipmentAnalytics(BaseModel):
    total: int
    pending: int
    in_transit: int
    delivered: int
    delayed_or_damaged: int
    recent: List[ShipmentResponse]
