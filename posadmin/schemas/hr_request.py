from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator

LeaveType = Literal["annual", "sick", "maternity", "paternity", "emergency", "study"]
Decision = Literal["approved", "rejected"]


class SalaryRequestCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=2, max_length=2000)


class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=2, max_length=2000)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class RequestDecision(BaseModel):
    status: Decision


class SalaryRequestResponse(BaseModel):
    id: int
    staff_id: int
    staff_name: str = ""
    amount: Decimal
    reason: str
    request_date: datetime
    status: str
    approved_by: Optional[int] = None
    approved_by_name: str = ""
    approved_at: Optional[datetime] = None


class LeaveRequestResponse(BaseModel):
    id: int
    staff_id: int
    staff_name: str = ""
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: str
    status: str
    approved_by: Optional[int] = None
    approved_by_name: str = ""
    approved_at: Optional[datetime] = None
    created_at: datetime


class SalaryRequestListResponse(BaseModel):
    data: List[SalaryRequestResponse]
    total: int


class LeaveRequestListResponse(BaseModel):
    data: List[LeaveRequestResponse]
    total: int
