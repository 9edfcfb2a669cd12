"""
Organization (tenant) model
Staff, roles and departments belong to exactly one organization
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from posadmin.db.base import Base


class Organization(Base):
    """Tenant"""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Organization name")
    code = Column(String(50), nullable=False, unique=True, index=True, comment="Short code")
    is_active = Column(Boolean, default=True, comment="Active")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Organization {self.code}: {self.name}>"
