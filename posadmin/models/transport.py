from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from posadmin.db.base import Base

TRANSPORT_STATUSES = ("available", "in-use", "maintenance")


class Transport(Base):
    """Delivery vehicle"""
    __tablename__ = "transports"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="Name")
    transport_type = Column(String(50), nullable=False, comment="Type, e.g. truck / van / refrigerated")
    capacity = Column(Integer, nullable=False, comment="Capacity")
    location = Column(String(200), comment="Home location")
    vehicle_number = Column(String(30), nullable=False, unique=True, comment="Plate number (unique)")
    driver_name = Column(String(100), comment="Driver")
    driver_contact = Column(String(50), comment="Driver contact")
    status = Column(String(20), default="available", index=True, comment="available/in-use/maintenance")

    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Transport {self.vehicle_number}>"

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.vehicle_number})"
