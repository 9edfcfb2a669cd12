"""Payment accounts, expenses and other income"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base

EXPENSE_STATUSES = ("pending", "paid")
INCOME_STATUSES = ("pending", "received")
ACCOUNT_TYPES = ("cash", "bank", "credit", "asset", "liability", "equity")
ACCOUNT_STATUSES = ("active", "inactive", "closed")
# money moved between own accounts, not profit or loss
TRANSFER_CATEGORY = "Transfer"


class PaymentAccount(Base):
    """Cash box, bank or ledger account that money moves through"""
    __tablename__ = "payment_accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Account name")
    # cash / bank / credit / asset / liability / equity
    account_type = Column(String(20), nullable=False, index=True, comment="Account type")
    balance = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Current balance")
    account_number = Column(String(50), comment="Bank account number")
    bank_name = Column(String(100), comment="Bank name")
    # active / inactive / closed; deleting closes the account
    status = Column(String(20), default="active", index=True, comment="Status")
    description = Column(Text, comment="Description")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PaymentAccount {self.name} {self.balance}>"


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, comment="Title")
    category = Column(String(100), nullable=False, index=True, comment="Category, e.g. Rent")
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Amount")
    date = Column(DateTime, default=datetime.utcnow, index=True, comment="Expense date")
    status = Column(String(20), default="pending", index=True, comment="pending/paid")
    account_id = Column(Integer, ForeignKey("payment_accounts.id"), index=True, comment="Paid from")
    payment_method = Column(String(30), comment="cash / card / bank_transfer / cheque")
    notes = Column(Text, comment="Notes")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    account = relationship("PaymentAccount", lazy="joined")


class Income(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, comment="Title")
    category = Column(String(100), nullable=False, index=True, comment="Category; 'Sales' rows are excluded from other income")
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Amount")
    date = Column(DateTime, default=datetime.utcnow, index=True, comment="Income date")
    status = Column(String(20), default="pending", index=True, comment="pending/received")
    account_id = Column(Integer, ForeignKey("payment_accounts.id"), index=True, comment="Paid into")
    notes = Column(Text, comment="Notes")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    account = relationship("PaymentAccount", lazy="joined")
