"""
Warehouse model
Stock (product batches) always lives in exactly one warehouse
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from posadmin.db.base import Base

WAREHOUSE_TYPES = ("main", "secondary", "cold", "frozen", "distribution")


class Warehouse(Base):
    """Warehouse / store location"""
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Warehouse name")
    location = Column(String(200), nullable=False, comment="Location / address")
    description = Column(String(500), comment="Description")
    capacity = Column(Integer, nullable=False, comment="Capacity (units)")
    warehouse_type = Column(String(20), default="main", comment="main/secondary/cold/frozen/distribution")
    manager_id = Column(Integer, ForeignKey("staff.id"), comment="Manager staff id")

    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Warehouse {self.name}>"
