"""
Staff schemas
"""
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

WorkLocation = Literal["on-site", "remote", "hybrid"]


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CardDetails(BaseModel):
    card_type: Optional[str] = None
    card_number: Optional[str] = None
    expiry: Optional[str] = None


class AccountDetails(BaseModel):
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None


class StaffBase(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=100, description="Email")
    phone_number: Optional[str] = Field(None, max_length=30)
    emergency_number: Optional[str] = Field(None, max_length=30)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    job_title: Optional[str] = Field(None, max_length=100)
    work_location: WorkLocation = "on-site"
    start_date: Optional[date] = None
    bio: Optional[str] = Field(None, max_length=2000)
    address: Optional[Address] = None
    card_details: Optional[CardDetails] = None
    account_details: Optional[AccountDetails] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class StaffCreate(StaffBase):
    password: str = Field(..., min_length=6, max_length=128, description="Initial password")
    role_id: int = Field(..., description="Role")
    department_id: Optional[int] = Field(None, description="Department")
    warehouse_ids: List[int] = Field(default_factory=list, description="Assigned warehouses")
    is_active: bool = True
    require_password_change: bool = False


class StaffUpdate(BaseModel):
    """Password is changed through /auth/change-password only"""
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=30)
    emergency_number: Optional[str] = Field(None, max_length=30)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    job_title: Optional[str] = Field(None, max_length=100)
    work_location: Optional[WorkLocation] = None
    start_date: Optional[date] = None
    bio: Optional[str] = Field(None, max_length=2000)
    address: Optional[Address] = None
    card_details: Optional[CardDetails] = None
    account_details: Optional[AccountDetails] = None
    role_id: Optional[int] = None
    department_id: Optional[int] = None
    is_active: Optional[bool] = None
    on_leave: Optional[bool] = None
    is_banned: Optional[bool] = None
    require_password_change: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class WarehouseAssignment(BaseModel):
    warehouse_ids: List[int] = Field(..., description="Replaces the current assignment")


class WarehouseBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class StaffResponse(StaffBase):
    id: int
    organization_id: int
    username: str
    role_id: int
    role_name: str = ""
    department_id: Optional[int] = None
    department_name: str = ""
    warehouses: List[WarehouseBrief] = []
    is_active: bool
    on_leave: bool
    is_banned: bool
    require_password_change: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StaffTableRow(BaseModel):
    """Staff list row"""
    id: int
    full_name: str
    username: str
    email: str
    phone_number: Optional[str] = None
    job_title: Optional[str] = None
    department: str = ""
    role: str = ""
    status: str
    created_at: datetime


class StaffListResponse(BaseModel):
    data: List[StaffTableRow]
    total: int


class StaffStats(BaseModel):
    total: int
    active: int
    inactive: int
    on_leave: int
