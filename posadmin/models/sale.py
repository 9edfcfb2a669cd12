"""
Sale (POS transaction) model
Each line records the batches it consumed so a void can put stock back exactly
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base

PAYMENT_METHODS = ("cash", "card", "mobile")


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_number = Column(String(50), unique=True, nullable=False, index=True, comment="Receipt number")
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True, comment="Selling location")
    customer_id = Column(Integer, ForeignKey("customers.id"), index=True, comment="Customer (optional)")

    subtotal = Column(DECIMAL(12, 2), nullable=False, comment="Sum of line totals")
    discount = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Discount")
    tax = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Tax")
    total = Column(DECIMAL(12, 2), nullable=False, comment="subtotal - discount + tax")

    total_revenue = Column(DECIMAL(12, 2), nullable=False, comment="Revenue")
    total_cost = Column(DECIMAL(12, 2), nullable=False, comment="Cost of goods")
    profit = Column(DECIMAL(12, 2), nullable=False, comment="Revenue - cost")

    payment_method = Column(String(20), nullable=False, default="cash", comment="cash/card/mobile")
    cash_received = Column(DECIMAL(12, 2), comment="Cash tendered")
    change_due = Column(DECIMAL(12, 2), comment="Change given")

    is_voided = Column(Boolean, default=False, index=True, comment="Voided")
    void_reason = Column(String(200), comment="Void reason")
    voided_at = Column(DateTime, comment="Voided at")
    voided_by = Column(Integer, ForeignKey("staff.id"))

    notes = Column(Text, comment="Notes")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    warehouse = relationship("Warehouse", lazy="joined")
    customer = relationship("Customer", lazy="joined")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<Sale {self.sale_number}: {self.total}>"

    @property
    def customer_name(self) -> str:
        return self.customer.name if self.customer else "Walk-in"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit selling price")
    total = Column(DECIMAL(12, 2), nullable=False, comment="unit_price x quantity")
    cost_of_goods = Column(DECIMAL(12, 2), nullable=False, comment="Cost of the consumed batches")

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product", lazy="joined")
    allocations = relationship("SaleItemBatch", cascade="all, delete-orphan", lazy="selectin")

    @property
    def profit(self) -> Decimal:
        return Decimal(str(self.total)) - Decimal(str(self.cost_of_goods))
