"""
Product model
Stock, cost and price live on product batches, not on the product itself
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from posadmin.db.base import Base


class Product(Base):
    """Product master data"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True, comment="Product name")
    sku = Column(String(50), unique=True, index=True, comment="SKU (unique when set)")
    barcode = Column(String(50), unique=True, index=True, comment="Barcode (unique when set)")
    description = Column(Text, comment="Description")

    category_id = Column(Integer, ForeignKey("categories.id"), index=True, comment="Category")
    brand_id = Column(Integer, ForeignKey("brands.id"), index=True, comment="Brand")
    unit_id = Column(Integer, ForeignKey("units.id"), comment="Unit of measure")

    tags = Column(JSON, default=list, comment="Tags")
    colors = Column(JSON, default=list, comment="Colour variants")
    sizes = Column(JSON, default=list, comment="Size variants")

    is_active = Column(Boolean, default=True, comment="Active")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", lazy="joined")
    brand = relationship("Brand", lazy="joined")
    unit = relationship("Unit", lazy="joined")

    def __repr__(self):
        return f"<Product {self.sku or self.id}: {self.name}>"

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else ""

    @property
    def brand_name(self) -> str:
        return self.brand.name if self.brand else ""

    @property
    def unit_name(self) -> str:
        return self.unit.short_name if self.unit else ""
