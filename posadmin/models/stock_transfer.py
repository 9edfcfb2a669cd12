"""
Stock transfer model
pending -> in-transit (shipment created) -> completed (stock moved)
pending / in-transit -> cancelled
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base

TRANSFER_STATUSES = ("pending", "in-transit", "completed", "cancelled")


class StockTransfer(Base):
    __tablename__ = "stock_transfers"

    id = Column(Integer, primary_key=True, index=True)
    transfer_number = Column(String(50), unique=True, nullable=False, index=True, comment="ST + 6 digits")
    from_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    to_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)

    status = Column(String(20), default="pending", index=True, comment="pending/in-transit/completed/cancelled")
    reason = Column(String(500), nullable=False, comment="Reason for the transfer")
    notes = Column(Text, comment="Notes")

    requested_by = Column(Integer, ForeignKey("staff.id"), comment="Requested by")
    approved_by = Column(Integer, ForeignKey("staff.id"), comment="Approved by")
    # shipments reference transfers, so no FK back
    shipment_id = Column(Integer, index=True, comment="Shipment created on approval")

    transfer_date = Column(DateTime, default=datetime.utcnow, comment="Requested at")
    completed_date = Column(DateTime, comment="Completed at")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    from_warehouse = relationship("Warehouse", foreign_keys=[from_warehouse_id], lazy="joined")
    to_warehouse = relationship("Warehouse", foreign_keys=[to_warehouse_id], lazy="joined")
    requester = relationship("Staff", foreign_keys=[requested_by], lazy="joined")
    approver = relationship("Staff", foreign_keys=[approved_by], lazy="joined")
    items = relationship("StockTransferItem", back_populates="transfer", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<StockTransfer {self.transfer_number}: {self.status}>"

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_value(self) -> Decimal:
        return sum((item.total_cost for item in self.items), Decimal("0.00"))

    @property
    def is_open(self) -> bool:
        return self.status in ("pending", "in-transit")


class StockTransferItem(Base):
    __tablename__ = "stock_transfer_items"

    id = Column(Integer, primary_key=True, index=True)
    transfer_id = Column(Integer, ForeignKey("stock_transfers.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, comment="Quantity")
    unit_cost = Column(DECIMAL(12, 2), nullable=False, comment="Unit cost")

    transfer = relationship("StockTransfer", back_populates="items")
    product = relationship("Product", lazy="joined")

    @property
    def total_cost(self) -> Decimal:
        return Decimal(str(self.unit_cost)) * self.quantity
