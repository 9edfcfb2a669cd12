"""
Product brand API
"""
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.deps import get_db, require_permission
from posadmin.models import Brand, Product, Staff
from posadmin.schemas.catalog import BrandCreate, BrandUpdate, BrandResponse

router = APIRouter()


def build_brand_response(brand: Brand, product_count: int = 0) -> BrandResponse:
    return BrandResponse(
        id=brand.id,
        name=brand.name,
        description=brand.description,
        is_active=bool(brand.is_active),
        product_count=product_count,
        created_at=brand.created_at,
        updated_at=brand.updated_at)


async def product_counts(db: AsyncSession) -> dict:
    result = await db.execute(
        select(Product.brand_id, func.count(Product.id))
        .where(Product.is_deleted == False, Product.brand_id != None)
        .group_by(Product.brand_id)
    )
    return dict(result.all())


async def get_brand_or_404(db: AsyncSession, brand_id: int) -> Brand:
    brand = await db.get(Brand, brand_id)
    if not brand or brand.is_deleted:
        raise HTTPException(status_code=404, detail="Brand not found")
    return brand


async def check_name_free(db: AsyncSession, name: str, exclude_id: int = None) -> None:
    query = select(Brand.id).where(func.lower(Brand.name) == name.strip().lower())
    if exclude_id:
        query = query.where(Brand.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Brand already exists")


@router.get("/")
async def list_brands(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("brand.view"))) -> List[BrandResponse]:
    """Brands by name"""
    result = await db.execute(
        select(Brand).where(Brand.is_deleted == False).order_by(Brand.name)
    )
    counts = await product_counts(db)
    return [build_brand_response(b, counts.get(b.id, 0)) for b in result.scalars().all()]


@router.post("/", response_model=BrandResponse)
async def create_brand(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("brand.add")),
    brand_in: BrandCreate) -> Any:
    """Create a brand"""
    await check_name_free(db, brand_in.name)

    brand = Brand(
        name=brand_in.name.strip(),
        description=brand_in.description,
        created_by=current_staff.id
    )
    db.add(brand)
    await db.commit()
    await db.refresh(brand)

    return build_brand_response(brand)


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("brand.view")),
    brand_id: int) -> Any:
    brand = await get_brand_or_404(db, brand_id)
    counts = await product_counts(db)
    return build_brand_response(brand, counts.get(brand.id, 0))


@router.put("/{brand_id}", response_model=BrandResponse)
async def update_brand(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("brand.edit")),
    brand_id: int,
    brand_in: BrandUpdate) -> Any:
    brand = await get_brand_or_404(db, brand_id)

    if brand_in.name and brand_in.name.strip().lower() != brand.name.lower():
        await check_name_free(db, brand_in.name, exclude_id=brand.id)

    update_data = brand_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "is_active"):
            continue
        setattr(brand, field, value.strip() if field == "name" else value)

    await db.commit()
    await db.refresh(brand)

    counts = await product_counts(db)
    return build_brand_response(brand, counts.get(brand.id, 0))


@router.delete("/{brand_id}")
async def delete_brand(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("brand.delete")),
    brand_id: int) -> Any:
    """Soft delete; refused while active products use it"""
    brand = await get_brand_or_404(db, brand_id)

    in_use = await db.execute(
        select(func.count(Product.id)).where(
            Product.brand_id == brand.id,
            Product.is_deleted == False,
            Product.is_active == True
        )
    )
    if in_use.scalar():
        raise HTTPException(status_code=400, detail="Brand is used by active products")

    brand.is_deleted = True
    brand.is_active = False
    await db.commit()

    return {"message": "Brand deleted"}
