"""
Transport (vehicle) schemas
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

TransportStatus = Literal["available", "in-use", "maintenance"]


class TransportBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Name")
    transport_type: str = Field(..., min_length=2, max_length=50, description="Vehicle type")
    capacity: int = Field(..., gt=0, description="Capacity")
    location: Optional[str] = Field(None, max_length=200)
    vehicle_number: str = Field(..., min_length=1, max_length=30, description="Plate number")
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_contact: Optional[str] = Field(None, max_length=50)


class TransportCreate(TransportBase):
    status: TransportStatus = "available"


class TransportUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    transport_type: Optional[str] = Field(None, min_length=2, max_length=50)
    capacity: Optional[int] = Field(None, gt=0)
    location: Optional[str] = Field(None, max_length=200)
    vehicle_number: Optional[str] = Field(None, min_length=1, max_length=30)
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_contact: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class TransportStatusUpdate(BaseModel):
    status: TransportStatus


class TransportResponse(TransportBase):
    id: int
    status: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransportListResponse(BaseModel):
    data: List[TransportResponse]
    total: int
