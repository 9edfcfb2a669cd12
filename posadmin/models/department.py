from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from posadmin.db.base import Base


class Department(Base):
    """Department inside an organization"""
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False, comment="Department name, unique per organization")
    description = Column(String(500), comment="Description")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    # staff id, no FK: staff reference departments
    created_by = Column(Integer, comment="Created by staff id")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Department {self.name}>"
