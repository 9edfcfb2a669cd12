from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class FinanceEntryBase(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    category: str = Field(..., min_length=2, max_length=100)
    amount: Decimal = Field(..., gt=0)
    date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)
    account_id: Optional[int] = None


class ExpenseCreate(FinanceEntryBase):
    status: Literal["pending", "paid"] = "pending"
    payment_method: Optional[str] = Field(None, max_length=30)


class ExpenseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[datetime] = None
    status: Optional[Literal["pending", "paid"]] = None
    notes: Optional[str] = Field(None, max_length=2000)


class IncomeCreate(FinanceEntryBase):
    status: Literal["pending", "received"] = "pending"


class IncomeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[datetime] = None
    status: Optional[Literal["pending", "received"]] = None
    notes: Optional[str] = Field(None, max_length=2000)


class FinanceEntryResponse(BaseModel):
    id: int
    title: str
    category: str
    amount: Decimal
    date: datetime
    status: str
    account_id: Optional[int] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FinanceEntryListResponse(BaseModel):
    data: List[FinanceEntryResponse]
    total: int
    total_amount: Decimal


AccountType = Literal["cash", "bank", "credit", "asset", "liability", "equity"]


class PaymentAccountCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    account_type: AccountType
    balance: Decimal = Field(default=Decimal("0"), description="Opening balance")
    account_number: Optional[str] = Field(None, max_length=50)
    bank_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


class PaymentAccountUpdate(BaseModel):
    """Balance moves through transfers only"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    account_type: Optional[AccountType] = None
    account_number: Optional[str] = Field(None, max_length=50)
    bank_name: Optional[str] = Field(None, max_length=100)
    status: Optional[Literal["active", "inactive"]] = None
    description: Optional[str] = Field(None, max_length=1000)


class PaymentAccountResponse(BaseModel):
    id: int
    name: str
    account_type: str
    balance: Decimal
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    status: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FundsTransfer(BaseModel):
    from_account_id: int
    to_account_id: int
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=500)


class FundsTransferResult(BaseModel):
    from_account: PaymentAccountResponse
    to_account: PaymentAccountResponse
    expense_id: int
    income_id: int


class AccountTransaction(BaseModel):
    id: int
    type: Literal["expense", "income"]
    title: str
    category: str
    amount: Decimal
    date: datetime
    status: str


class AccountTransactionList(BaseModel):
    account: PaymentAccountResponse
    data: List[AccountTransaction]
    total: int


class BalanceSheet(BaseModel):
    cash: Decimal
    bank: Decimal
    other_assets: Decimal
    total_assets: Decimal
    liabilities: Decimal
    equity: Decimal
    retained_earnings: Decimal
    total_equity: Decimal
    as_of: datetime
