"""
Product category API
"""
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.deps import get_db, require_permission
from posadmin.models import Category, Product, Staff
from posadmin.schemas.catalog import CategoryCreate, CategoryUpdate, CategoryResponse

router = APIRouter()


def build_category_response(category: Category, product_count: int = 0) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        is_active=bool(category.is_active),
        product_count=product_count,
        created_at=category.created_at,
        updated_at=category.updated_at)


async def product_counts(db: AsyncSession) -> dict:
    result = await db.execute(
        select(Product.category_id, func.count(Product.id))
        .where(Product.is_deleted == False, Product.category_id != None)
        .group_by(Product.category_id)
    )
    return dict(result.all())


async def get_category_or_404(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category or category.is_deleted:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def check_name_free(db: AsyncSession, name: str, exclude_id: int = None) -> None:
    query = select(Category.id).where(func.lower(Category.name) == name.strip().lower())
    if exclude_id:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Category already exists")


@router.get("/")
async def list_categories(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("category.view"))) -> List[CategoryResponse]:
    """Categories by name"""
    result = await db.execute(
        select(Category).where(Category.is_deleted == False).order_by(Category.name)
    )
    counts = await product_counts(db)
    return [build_category_response(c, counts.get(c.id, 0)) for c in result.scalars().all()]


@router.post("/", response_model=CategoryResponse)
async def create_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("category.add")),
    category_in: CategoryCreate) -> Any:
    """Create a category"""
    await check_name_free(db, category_in.name)

    category = Category(
        name=category_in.name.strip(),
        description=category_in.description,
        created_by=current_staff.id
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)

    return build_category_response(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("category.view")),
    category_id: int) -> Any:
    category = await get_category_or_404(db, category_id)
    counts = await product_counts(db)
    return build_category_response(category, counts.get(category.id, 0))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("category.edit")),
    category_id: int,
    category_in: CategoryUpdate) -> Any:
    category = await get_category_or_404(db, category_id)

    if category_in.name and category_in.name.strip().lower() != category.name.lower():
        await check_name_free(db, category_in.name, exclude_id=category.id)

    update_data = category_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "is_active"):
            continue
        setattr(category, field, value.strip() if field == "name" else value)

    await db.commit()
    await db.refresh(category)

    counts = await product_counts(db)
    return build_category_response(category, counts.get(category.id, 0))


@router.delete("/{category_id}")
async def delete_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("category.delete")),
    category_id: int) -> Any:
    """Soft delete; refused while active products use it"""
    category = await get_category_or_404(db, category_id)

    in_use = await db.execute(
        select(func.count(Product.id)).where(
            Product.category_id == category.id,
            Product.is_deleted == False,
            Product.is_active == True
        )
    )
    if in_use.scalar():
        raise HTTPException(status_code=400, detail="Category is used by active products")

    category.is_deleted = True
    category.is_active = False
    await db.commit()

    return {"message": "Category deleted"}
