from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from posadmin.db.base import Base


class Category(Base):
    """Product category"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Category name")
    description = Column(String(500), comment="Description")
    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Category {self.name}>"


class Brand(Base):
    """Product brand"""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="Brand name")
    description = Column(String(500), comment="Description")
    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Brand {self.name}>"
