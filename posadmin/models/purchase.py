"""
Purchase order model
ordered -> received (items become product batches) or cancelled
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    purchase_number = Column(String(50), unique=True, nullable=False, index=True, comment="PO number")
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True, comment="Receiving warehouse")

    transport_cost = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Transport cost")
    tax = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Tax")
    other_expenses = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Other expenses")

    # ordered / received / cancelled
    status = Column(String(20), default="ordered", index=True, comment="Status")
    purchase_date = Column(DateTime, default=datetime.utcnow, comment="Order date")
    received_at = Column(DateTime, comment="Received at")
    notes = Column(Text, comment="Notes")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = relationship("Supplier", lazy="joined")
    warehouse = relationship("Warehouse", lazy="joined")
    items = relationship("PurchaseItem", back_populates="purchase", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<Purchase {self.purchase_number}>"

    @property
    def items_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    @property
    def extra_costs(self) -> Decimal:
        return sum(
            (Decimal(str(v or 0)) for v in (self.transport_cost, self.tax, self.other_expenses)),
            Decimal("0.00")
        )

    @property
    def total_amount(self) -> Decimal:
        return self.items_total + self.extra_costs


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, comment="Ordered quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    expiry_date = Column(DateTime, comment="Expiry of the delivered lot")

    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product", lazy="joined")

    @property
    def line_total(self) -> Decimal:
        return Decimal(str(self.unit_price)) * self.quantity
