from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from posadmin.schemas.staff import EMAIL_PATTERN

SupplierStatus = Literal["active", "inactive", "pending"]


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Company name")
    contact_person: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=100)
    phone: str = Field(..., min_length=3, max_length=30)
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    status: SupplierStatus = "active"
    rating: float = Field(default=0, ge=0, le=5)
    payment_terms: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=50)
    bank_account: Optional[str] = Field(None, max_length=100)
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    contact_person: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=100)
    phone: Optional[str] = Field(None, min_length=3, max_length=30)
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    rating: Optional[float] = Field(None, ge=0, le=5)
    payment_terms: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=50)
    bank_account: Optional[str] = Field(None, max_length=100)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    current_balance: Optional[Decimal] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class SupplierStatusUpdate(BaseModel):
    status: SupplierStatus


class SupplierResponse(SupplierBase):
    id: int
    total_orders: int
    total_spent: Decimal
    current_balance: Decimal
    join_date: Optional[datetime] = None
    last_order_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SupplierTableRow(BaseModel):
    id: int
    name: str
    contact_person: str
    email: str
    phone: str
    city: Optional[str] = None
    status: str
    rating: float
    total_orders: int
    total_spent: Decimal
    last_order_date: Optional[datetime] = None


class SupplierListResponse(BaseModel):
    data: List[SupplierTableRow]
    total: int


class SupplierStats(BaseModel):
    total_suppliers: int
    active_suppliers: int
    pending_suppliers: int
    total_spent: Decimal
    average_rating: float
