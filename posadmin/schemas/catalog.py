"""
Catalog schemas - categories, brands, units and products
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


# ===== Category / Brand =====
class NamedEntityBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Name")
    description: Optional[str] = Field(None, max_length=500)


class NamedEntityCreate(NamedEntityBase):
    pass


class NamedEntityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class NamedEntityResponse(NamedEntityBase):
    id: int
    is_active: bool
    product_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


CategoryCreate = NamedEntityCreate
CategoryUpdate = NamedEntityUpdate
CategoryResponse = NamedEntityResponse
BrandCreate = NamedEntityCreate
BrandUpdate = NamedEntityUpdate
BrandResponse = NamedEntityResponse


# ===== Unit =====
class UnitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, description="Unit name")
    short_name: str = Field(..., min_length=1, max_length=20, description="Symbol")
    base_unit_id: Optional[int] = Field(None, description="Base unit for derived units")
    conversion_factor: Decimal = Field(default=Decimal("1"), gt=0, description="Base units per one of this unit")


class UnitCreate(UnitBase):
    pass


class UnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    short_name: Optional[str] = Field(None, min_length=1, max_length=20)
    base_unit_id: Optional[int] = None
    conversion_factor: Optional[Decimal] = Field(None, gt=0)
    is_active: Optional[bool] = None


class UnitResponse(UnitBase):
    id: int
    is_base: bool
    is_active: bool
    base_unit_name: str = ""
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeedUnitsResponse(BaseModel):
    created: List[str]
    existing: List[str]


# ===== Product =====
class ProductBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200, description="Product name")
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    barcode: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=2000)
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    unit_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    barcode: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=2000)
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    unit_id: Optional[int] = None
    tags: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: int
    is_active: bool
    category_name: str = ""
    brand_name: str = ""
    unit_name: str = ""
    stock: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    page: int
    limit: int


class PosProduct(BaseModel):
    """Product card on the POS screen"""
    id: int
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    category: str = ""
    stock: int
    price: Decimal
    is_popular: bool
