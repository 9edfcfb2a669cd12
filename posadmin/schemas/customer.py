from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Name")
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=2000)
    birthday: Optional[date] = None
    preferences: List[str] = Field(default_factory=list)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=2000)
    birthday: Optional[date] = None
    preferences: Optional[List[str]] = None
    is_active: Optional[bool] = None


class LoyaltyPointsUpdate(BaseModel):
    points: int = Field(..., gt=0, description="Points to add")


class CustomerResponse(CustomerBase):
    id: int
    loyalty_points: int
    total_spent: Decimal
    total_orders: int
    tier: str
    is_active: bool
    last_visit: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
