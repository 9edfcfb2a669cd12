"""Payroll schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class SalaryComponent(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    type: Literal["fixed", "percentage"] = "fixed"


class SalaryStructureCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=100)
    department_id: Optional[int] = None
    position: Optional[str] = Field(None, max_length=100)
    basic_salary: Decimal = Field(..., gt=0)
    allowances: List[SalaryComponent] = Field(default_factory=list)
    deductions: List[SalaryComponent] = Field(default_factory=list)
    description: Optional[str] = Field(None, max_length=1000)


class SalaryStructureUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    department_id: Optional[int] = None
    position: Optional[str] = Field(None, max_length=100)
    basic_salary: Optional[Decimal] = Field(None, gt=0)
    allowances: Optional[List[SalaryComponent]] = None
    deductions: Optional[List[SalaryComponent]] = None
    status: Optional[Literal["active", "inactive"]] = None
    description: Optional[str] = Field(None, max_length=1000)


class SalaryStructureResponse(BaseModel):
    id: int
    title: str
    department_id: Optional[int] = None
    department_name: str = ""
    position: Optional[str] = None
    basic_salary: Decimal
    allowances: List[SalaryComponent]
    deductions: List[SalaryComponent]
    total_allowances: Decimal
    total_deductions: Decimal
    total_salary: Decimal
    status: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class StructureAssignment(BaseModel):
    structure_id: Optional[int] = Field(None, description="None removes the assignment")


class SalaryPaymentCreate(BaseModel):
    staff_id: int
    pay_month: int = Field(..., ge=1, le=12)
    pay_year: int = Field(..., ge=2000, le=2100)
    structure_id: Optional[int] = Field(None, description="Defaults to the staff member's structure")
    payment_method: Literal["bank_transfer", "cash", "cheque"] = "bank_transfer"
    notes: Optional[str] = Field(None, max_length=1000)


class PayrollRun(BaseModel):
    pay_month: int = Field(..., ge=1, le=12)
    pay_year: int = Field(..., ge=2000, le=2100)


class PaymentProcess(BaseModel):
    account_id: Optional[int] = Field(None, description="Account the salary is paid from")
    payment_method: Optional[Literal["bank_transfer", "cash", "cheque"]] = None


class SalaryPaymentResponse(BaseModel):
    id: int
    staff_id: int
    staff_name: str = ""
    structure_id: Optional[int] = None
    pay_month: int
    pay_year: int
    period: str
    basic_salary: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    gross_salary: Decimal
    net_salary: Decimal
    status: str
    payment_method: Optional[str] = None
    payment_date: Optional[datetime] = None
    account_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime


class SalaryPaymentListResponse(BaseModel):
    data: List[SalaryPaymentResponse]
    total: int
    total_net: Decimal


class PayrollRunResult(BaseModel):
    period: str
    created: List[SalaryPaymentResponse]
    skipped: int
