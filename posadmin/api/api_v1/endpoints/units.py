"""
Units of measure API
"""
from decimal import Decimal
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.deps import get_db, require_permission
from posadmin.models import Unit, Product, Staff
from posadmin.schemas.catalog import UnitCreate, UnitUpdate, UnitResponse, SeedUnitsResponse

router = APIRouter()

# (name, symbol, base unit name, factor)
BASE_UNITS = [
    ("piece", "pc", None, Decimal("1")),
    ("kilogram", "kg", None, Decimal("1")),
    ("gram", "g", "kilogram", Decimal("0.001")),
    ("litre", "l", None, Decimal("1")),
    ("millilitre", "ml", "litre", Decimal("0.001")),
    ("metre", "m", None, Decimal("1")),
    ("box", "box", None, Decimal("1")),
    ("pack", "pack", None, Decimal("1")),
    ("dozen", "dz", "piece", Decimal("12")),
]


def build_unit_response(unit: Unit) -> UnitResponse:
    return UnitResponse(
        id=unit.id,
        name=unit.name,
        short_name=unit.short_name,
        base_unit_id=unit.base_unit_id,
        conversion_factor=unit.conversion_factor or Decimal("1"),
        is_base=bool(unit.is_base),
        is_active=bool(unit.is_active),
        base_unit_name=unit.base_unit.name if unit.base_unit else "",
        created_at=unit.created_at,
        updated_at=unit.updated_at)


async def get_unit_or_404(db: AsyncSession, unit_id: int) -> Unit:
    unit = await db.get(Unit, unit_id)
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


async def reload_unit(db: AsyncSession, unit_id: int) -> Unit:
    result = await db.execute(
        select(Unit).where(Unit.id == unit_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def check_base_unit(db: AsyncSession, base_unit_id: int, unit_id: int = None) -> None:
    if unit_id and base_unit_id == unit_id:
        raise HTTPException(status_code=400, detail="A unit cannot be its own base unit")
    base = await db.get(Unit, base_unit_id)
    if not base:
        raise HTTPException(status_code=400, detail="Base unit not found")
    if not base.is_base:
        raise HTTPException(status_code=400, detail="Base unit must itself be a base unit")


async def check_name_free(db: AsyncSession, name: str, exclude_id: int = None) -> None:
    query = select(Unit.id).where(func.lower(Unit.name) == name.strip().lower())
    if exclude_id:
        query = query.where(Unit.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Unit already exists")


@router.get("/")
async def list_units(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.view"))) -> List[UnitResponse]:
    """All units, base units first"""
    result = await db.execute(select(Unit).order_by(Unit.is_base.desc(), Unit.name))
    return [build_unit_response(u) for u in result.scalars().all()]


@router.post("/seed-base", response_model=SeedUnitsResponse)
async def seed_base_units(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.add"))) -> Any:
    """Insert the standard units that are missing"""
    result = await db.execute(select(Unit))
    by_name = {u.name.lower(): u for u in result.scalars().all()}

    created, existing = [], []
    for name, short_name, base_name, factor in BASE_UNITS:
        if name in by_name:
            existing.append(name)
            continue
        base = by_name.get(base_name) if base_name else None
        unit = Unit(
            name=name,
            short_name=short_name,
            base_unit_id=base.id if base else None,
            conversion_factor=factor,
            is_base=base is None,
            created_by=current_staff.id
        )
        db.add(unit)
        await db.flush()
        by_name[name] = unit
        created.append(name)

    await db.commit()
    return SeedUnitsResponse(created=created, existing=existing)


@router.post("/", response_model=UnitResponse)
async def create_unit(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.add")),
    unit_in: UnitCreate) -> Any:
    """Create a unit"""
    await check_name_free(db, unit_in.name)
    if unit_in.base_unit_id:
        await check_base_unit(db, unit_in.base_unit_id)

    unit = Unit(
        **unit_in.model_dump(),
        is_base=unit_in.base_unit_id is None,
        created_by=current_staff.id
    )
    if unit.is_base:
        unit.conversion_factor = Decimal("1")
    db.add(unit)
    await db.commit()

    return build_unit_response(await reload_unit(db, unit.id))


@router.get("/{unit_id}", response_model=UnitResponse)
async def get_unit(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.view")),
    unit_id: int) -> Any:
    unit = await get_unit_or_404(db, unit_id)
    return build_unit_response(unit)


@router.put("/{unit_id}", response_model=UnitResponse)
async def update_unit(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.edit")),
    unit_id: int,
    unit_in: UnitUpdate) -> Any:
    unit = await get_unit_or_404(db, unit_id)

    if unit_in.name and unit_in.name.strip().lower() != unit.name.lower():
        await check_name_free(db, unit_in.name, exclude_id=unit.id)

    update_data = unit_in.model_dump(exclude_unset=True)
    if "base_unit_id" in update_data:
        base_unit_id = update_data["base_unit_id"]
        if base_unit_id:
            await check_base_unit(db, base_unit_id, unit.id)
            dependants = await db.execute(select(func.count(Unit.id)).where(Unit.base_unit_id == unit.id))
            if dependants.scalar():
                raise HTTPException(status_code=400, detail="Unit is the base of other units")
        unit.is_base = base_unit_id is None
        if unit.is_base:
            update_data["conversion_factor"] = Decimal("1")

    for field, value in update_data.items():
        if value is None and field in ("name", "short_name", "conversion_factor", "is_active"):
            continue
        setattr(unit, field, value)

    await db.commit()
    return build_unit_response(await reload_unit(db, unit.id))


@router.delete("/{unit_id}")
async def delete_unit(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("unit.delete")),
    unit_id: int) -> Any:
    """Delete a unit no product or derived unit uses"""
    unit = await get_unit_or_404(db, unit_id)

    used = await db.execute(
        select(func.count(Product.id)).where(Product.unit_id == unit.id, Product.is_deleted == False)
    )
    if used.scalar():
        raise HTTPException(status_code=400, detail="Unit is used by products")
    dependants = await db.execute(select(func.count(Unit.id)).where(Unit.base_unit_id == unit.id))
    if dependants.scalar():
        raise HTTPException(status_code=400, detail="Unit is the base of other units")

    await db.delete(unit)
    await db.commit()

    return {"message": "Unit deleted"}
