"""
Shipment model
Moves goods between warehouses with a transport; either stand-alone (received
through the receiving screen) or created when a stock transfer is approved
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL, Float
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from posadmin.db.base import Base

SHIPMENT_STATUSES = ("pending", "in-transit", "delivered", "delayed", "damaged", "cancelled")
SHIPMENT_PRIORITIES = ("low", "medium", "high", "urgent")
ITEM_CONDITIONS = ("good", "damaged", "expired")

# allowed status changes
SHIPMENT_TRANSITIONS = {
    "pending": ("in-transit", "cancelled"),
    "in-transit": ("delivered", "delayed", "damaged", "cancelled"),
    "delayed": ("in-transit", "delivered", "cancelled"),
    "damaged": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True)
    shipment_number = Column(String(50), unique=True, nullable=False, index=True, comment="SH number")
    tracking_number = Column(String(50), unique=True, nullable=False, index=True, comment="TK tracking number")

    origin_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    destination_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    transport_id = Column(Integer, ForeignKey("transports.id"), index=True)
    stock_transfer_id = Column(Integer, ForeignKey("stock_transfers.id"), index=True, comment="Owning stock transfer")

    driver_name = Column(String(100), comment="Driver")
    driver_contact = Column(String(50), comment="Driver contact")

    total_value = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Sum of item values")
    status = Column(String(20), default="pending", index=True, comment="Status")
    priority = Column(String(10), default="medium", comment="low/medium/high/urgent")

    scheduled_pickup_date = Column(DateTime, comment="Scheduled pickup")
    actual_pickup_date = Column(DateTime, comment="Picked up at")
    estimated_delivery_date = Column(DateTime, comment="ETA")
    actual_delivery_date = Column(DateTime, comment="Delivered at")

    # Cold chain
    temperature_required = Column(Boolean, default=False, comment="Needs temperature control")
    min_temperature = Column(Float, comment="Min temperature")
    max_temperature = Column(Float, comment="Max temperature")

    insurance_required = Column(Boolean, default=False, comment="Insured")
    insurance_value = Column(DECIMAL(12, 2), comment="Insured value")

    current_location = Column(JSON, comment="{address, latitude, longitude, updated_at}")
    location_history = Column(JSON, default=list, comment="Previous locations")
    # {checked_by, checked_at, results, issues, approved}
    quality_check = Column(JSON, comment="Quality check result")

    notes = Column(Text, comment="Notes")
    delivery_notes = Column(Text, comment="Delivery notes")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    origin_warehouse = relationship("Warehouse", foreign_keys=[origin_warehouse_id], lazy="joined")
    destination_warehouse = relationship("Warehouse", foreign_keys=[destination_warehouse_id], lazy="joined")
    transport = relationship("Transport", lazy="joined")
    items = relationship("ShipmentItem", back_populates="shipment", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<Shipment {self.shipment_number}: {self.status}>"

    def can_transition_to(self, status: str) -> bool:
        return status in SHIPMENT_TRANSITIONS.get(self.status, ())

    @property
    def is_received(self) -> bool:
        """Goods were booked in through the receiving screen"""
        return any(item.received_quantity is not None for item in self.items)

    def recalculate_total(self):
        self.total_value = sum((Decimal(str(item.total_value or 0)) for item in self.items), Decimal("0.00"))


class ShipmentItem(Base):
    __tablename__ = "shipment_items"

    id = Column(Integer, primary_key=True, index=True)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, comment="Shipped quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    total_value = Column(DECIMAL(12, 2), nullable=False, comment="quantity x unit_price")
    batch_number = Column(String(80), comment="Source batch number")
    expiry_date = Column(DateTime, comment="Expiry")
    # good / damaged / expired
    condition = Column(String(20), default="good", comment="Condition on receipt")
    received_quantity = Column(Integer, comment="Quantity received")
    notes = Column(String(200), comment="Notes")

    shipment = relationship("Shipment", back_populates="items")
    product = relationship("Product", lazy="joined")
