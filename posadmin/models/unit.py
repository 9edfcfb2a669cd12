"""
Unit of measure
Derived units point at their base unit with a conversion factor
(e.g. gram -> kilogram, factor 0.001)
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True, comment="Unit name")
    short_name = Column(String(20), nullable=False, comment="Symbol, e.g. kg")
    base_unit_id = Column(Integer, ForeignKey("units.id"), comment="Base unit")
    conversion_factor = Column(DECIMAL(12, 4), default=Decimal("1"), comment="Quantity of the base unit per one of this unit")
    is_base = Column(Boolean, default=True, comment="Is a base unit")
    is_active = Column(Boolean, default=True, comment="Active")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    base_unit = relationship("Unit", remote_side=[id], lazy="joined", join_depth=1)

    def __repr__(self):
        return f"<Unit {self.short_name}>"

    def to_base(self, quantity: Decimal) -> Decimal:
        return Decimal(str(quantity)) * Decimal(str(self.conversion_factor or 1))
