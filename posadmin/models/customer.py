from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Date, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from posadmin.db.base import Base

# minimum total spent for each tier, highest first
CUSTOMER_TIERS = (
    ("platinum", Decimal("10000")),
    ("gold", Decimal("5000")),
    ("silver", Decimal("1000")),
    ("bronze", Decimal("0")),
)


def tier_for_spent(total_spent) -> str:
    spent = Decimal(str(total_spent or 0))
    for tier, minimum in CUSTOMER_TIERS:
        if spent >= minimum:
            return tier
    return "bronze"


class Customer(Base):
    """POS customer with loyalty counters"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="Name")
    email = Column(String(100), index=True, comment="Email")
    phone = Column(String(30), index=True, comment="Phone")
    address = Column(String(200), comment="Address")

    loyalty_points = Column(Integer, default=0, comment="Loyalty points")
    total_spent = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Total spent")
    total_orders = Column(Integer, default=0, comment="Order count")
    tier = Column(String(20), default="bronze", comment="bronze/silver/gold/platinum")

    notes = Column(Text, comment="Notes")
    birthday = Column(Date, comment="Birthday")
    preferences = Column(JSON, default=list, comment="Preferences")
    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")
    last_visit = Column(DateTime, default=datetime.utcnow, comment="Last visit")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Customer {self.name}>"

    def update_tier(self):
        self.tier = tier_for_spent(self.total_spent)
