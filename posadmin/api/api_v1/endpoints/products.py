"""
Product API
"""
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Product, Category, Brand, Unit, Staff
from posadmin.schemas.catalog import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    PosProduct)
from posadmin.services.inventory import stock_by_product

router = APIRouter()

POPULAR_STOCK_LEVEL = 50


def build_product_response(product: Product, stock: int = 0) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        name=product.name,
        sku=product.sku,
        barcode=product.barcode,
        description=product.description,
        category_id=product.category_id,
        brand_id=product.brand_id,
        unit_id=product.unit_id,
        tags=product.tags or [],
        colors=product.colors or [],
        sizes=product.sizes or [],
        is_active=bool(product.is_active),
        category_name=product.category_name,
        brand_name=product.brand_name,
        unit_name=product.unit_name,
        stock=stock,
        created_at=product.created_at,
        updated_at=product.updated_at)


async def get_product_or_404(db: AsyncSession, product_id: int) -> Product:
    result = await db.execute(
        select(Product)
        .where(Product.id == product_id, Product.is_deleted == False)
        .execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def check_references(db: AsyncSession, category_id=None, brand_id=None, unit_id=None) -> None:
    if category_id:
        category = await db.get(Category, category_id)
        if not category or category.is_deleted:
            raise HTTPException(status_code=400, detail="Category not found")
    if brand_id:
        brand = await db.get(Brand, brand_id)
        if not brand or brand.is_deleted:
            raise HTTPException(status_code=400, detail="Brand not found")
    if unit_id:
        if not await db.get(Unit, unit_id):
            raise HTTPException(status_code=400, detail="Unit not found")


async def check_codes_free(db: AsyncSession, sku: Optional[str], barcode: Optional[str], exclude_id: int = None) -> None:
    """SKU and barcode are unique across all products, deleted ones included"""
    if sku:
        query = select(Product.id).where(Product.sku == sku)
        if exclude_id:
            query = query.where(Product.id != exclude_id)
        if (await db.execute(query)).scalar():
            raise HTTPException(status_code=400, detail="SKU already exists")
    if barcode:
        query = select(Product.id).where(Product.barcode == barcode)
        if exclude_id:
            query = query.where(Product.id != exclude_id)
        if (await db.execute(query)).scalar():
            raise HTTPException(status_code=400, detail="Barcode already exists")


@router.get("/", response_model=ProductListResponse)
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("product.view")),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Name, SKU or barcode"),
    category_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None)) -> Any:
    """Product list with search and pagination"""
    query = select(Product).where(Product.is_deleted == False)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.name.ilike(pattern),
            Product.sku.ilike(pattern),
            Product.barcode.ilike(pattern)
        ))
    if category_id:
        query = query.where(Product.category_id == category_id)
    if brand_id:
        query = query.where(Product.brand_id == brand_id)
    if is_active is not None:
        query = query.where(Product.is_active == is_active)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Product.name, Product.id).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    products = result.scalars().all()
    stock = await stock_by_product(db)

    return ProductListResponse(
        data=[build_product_response(p, stock.get(p.id, {}).get("stock", 0)) for p in products],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/pos")
async def list_pos_products(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("sales.view")),
    warehouse_id: Optional[int] = Query(None, description="Stock of one warehouse only"),
    search: Optional[str] = Query(None)) -> List[PosProduct]:
    """Active products with stock and average selling price"""
    query = select(Product).where(Product.is_deleted == False, Product.is_active == True)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.name.ilike(pattern),
            Product.sku.ilike(pattern),
            Product.barcode.ilike(pattern)
        ))
    result = await db.execute(query.order_by(Product.name))
    stock = await stock_by_product(db, warehouse_id)

    items = []
    for product in result.scalars().all():
        levels = stock.get(product.id, {})
        quantity = levels.get("stock", 0)
        items.append(PosProduct(
            id=product.id,
            name=product.name,
            sku=product.sku,
            barcode=product.barcode,
            category=product.category_name,
            stock=quantity,
            price=levels.get("average_price", 0),
            is_popular=quantity > POPULAR_STOCK_LEVEL))
    return items


@router.post("/", response_model=ProductResponse)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("product.add")),
    product_in: ProductCreate) -> Any:
    """Create a product"""
    await check_codes_free(db, product_in.sku, product_in.barcode)
    await check_references(db, product_in.category_id, product_in.brand_id, product_in.unit_id)

    product = Product(
        **product_in.model_dump(),
        created_by=current_staff.id
    )
    db.add(product)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PRODUCT_CREATED",
        entity_type="product",
        entity_id=product.id,
        message=f"Created product {product.name}"
    )
    await db.commit()

    product = await get_product_or_404(db, product.id)
    return build_product_response(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("product.view")),
    product_id: int) -> Any:
    """Product details with total stock"""
    product = await get_product_or_404(db, product_id)
    stock = await stock_by_product(db)
    return build_product_response(product, stock.get(product.id, {}).get("stock", 0))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("product.edit")),
    product_id: int,
    product_in: ProductUpdate) -> Any:
    """Update a product"""
    product = await get_product_or_404(db, product_id)

    await check_codes_free(
        db,
        product_in.sku if product_in.sku != product.sku else None,
        product_in.barcode if product_in.barcode != product.barcode else None,
        exclude_id=product.id
    )
    await check_references(db, product_in.category_id, product_in.brand_id, product_in.unit_id)

    update_data = product_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "tags", "colors", "sizes", "is_active"):
            continue
        setattr(product, field, value)

    await db.commit()

    product = await get_product_or_404(db, product_id)
    stock = await stock_by_product(db)
    return build_product_response(product, stock.get(product.id, {}).get("stock", 0))


@router.delete("/{product_id}")
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("product.delete")),
    product_id: int) -> Any:
    """Soft delete"""
    product = await get_product_or_404(db, product_id)
    product.is_deleted = True
    product.is_active = False

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PRODUCT_DELETED",
        entity_type="product",
        entity_id=product.id,
        message=f"Deleted product {product.name}"
    )
    await db.commit()

    return {"message": "Product deleted"}
