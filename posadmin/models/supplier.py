from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL, Float
from posadmin.db.base import Base

SUPPLIER_STATUSES = ("active", "inactive", "pending")


class Supplier(Base):
    """Supplier"""
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="Company name")
    contact_person = Column(String(100), nullable=False, comment="Contact person")
    email = Column(String(100), nullable=False, unique=True, index=True, comment="Email (lowercase)")
    phone = Column(String(30), nullable=False, comment="Phone")
    address = Column(String(200), comment="Address")
    city = Column(String(100), comment="City")
    country = Column(String(100), comment="Country")
    status = Column(String(20), default="active", index=True, comment="active/inactive/pending")
    rating = Column(Float, default=0, comment="Rating 0-5")
    total_orders = Column(Integer, default=0, comment="Received purchase count")
    total_spent = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Total spent")
    payment_terms = Column(String(100), comment="Payment terms")
    category = Column(String(100), comment="Supply category")
    join_date = Column(DateTime, default=datetime.utcnow, comment="Joined")
    last_order_date = Column(DateTime, comment="Last order")
    website = Column(String(200), comment="Website")
    tax_id = Column(String(50), comment="Tax id")
    bank_account = Column(String(100), comment="Bank account")
    credit_limit = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Credit limit")
    current_balance = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Outstanding balance")
    notes = Column(Text, comment="Notes")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Supplier {self.name}>"
