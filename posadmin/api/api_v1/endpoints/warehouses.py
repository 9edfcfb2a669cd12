"""
Warehouse API
"""
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Warehouse, ProductBatch, Staff
from posadmin.schemas.warehouse import (
    WarehouseCreate,
    WarehouseUpdate,
    WarehouseResponse,
    WarehouseStockGroup,
    StockBatchLine)
from posadmin.services.inventory import warehouse_stock_summary

router = APIRouter()


async def get_warehouse_or_404(db: AsyncSession, warehouse_id: int) -> Warehouse:
    warehouse = await db.get(Warehouse, warehouse_id)
    if not warehouse or warehouse.is_deleted:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    return warehouse


async def get_active_warehouse(db: AsyncSession, warehouse_id: int, label: str = "Warehouse") -> Warehouse:
    """Active, non-deleted warehouse or 400"""
    warehouse = await db.get(Warehouse, warehouse_id)
    if not warehouse or warehouse.is_deleted or not warehouse.is_active:
        raise HTTPException(status_code=400, detail=f"{label} not found")
    return warehouse


async def check_manager(db: AsyncSession, manager_id: int) -> None:
    manager = await db.get(Staff, manager_id)
    if not manager or manager.is_deleted:
        raise HTTPException(status_code=400, detail="Manager not found")


async def check_name_free(db: AsyncSession, name: str, exclude_id: int = None) -> None:
    query = select(Warehouse.id).where(func.lower(Warehouse.name) == name.strip().lower())
    if exclude_id:
        query = query.where(Warehouse.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Warehouse already exist")


def build_stock_groups(groups: List[dict]) -> List[WarehouseStockGroup]:
    return [
        WarehouseStockGroup(
            product_id=g["product_id"],
            product_name=g["product_name"],
            sku=g["sku"],
            total_quantity=g["total_quantity"],
            stock_value=g["stock_value"],
            batches=[StockBatchLine.model_validate(b) for b in g["batches"]])
        for g in groups
    ]


@router.get("/")
async def list_warehouses(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.view"))) -> List[WarehouseResponse]:
    """Active warehouses by name"""
    result = await db.execute(
        select(Warehouse)
        .where(Warehouse.is_active == True, Warehouse.is_deleted == False)
        .order_by(Warehouse.name)
    )
    return [WarehouseResponse.model_validate(w) for w in result.scalars().all()]


@router.post("/", response_model=WarehouseResponse)
async def create_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.add")),
    warehouse_in: WarehouseCreate) -> Any:
    """Create a warehouse"""
    await check_name_free(db, warehouse_in.name)
    if warehouse_in.manager_id:
        await check_manager(db, warehouse_in.manager_id)

    warehouse = Warehouse(
        **warehouse_in.model_dump(),
        created_by=current_staff.id
    )
    warehouse.name = warehouse.name.strip()
    db.add(warehouse)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="WAREHOUSE_CREATED",
        entity_type="warehouse",
        entity_id=warehouse.id,
        message=f"Created warehouse {warehouse.name}"
    )
    await db.commit()
    await db.refresh(warehouse)

    return WarehouseResponse.model_validate(warehouse)


@router.get("/{warehouse_id}", response_model=WarehouseResponse)
async def get_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.view")),
    warehouse_id: int) -> Any:
    """Warehouse details"""
    warehouse = await get_warehouse_or_404(db, warehouse_id)
    return WarehouseResponse.model_validate(warehouse)


@router.get("/{warehouse_id}/stock")
async def get_warehouse_stock(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.view")),
    warehouse_id: int) -> List[WarehouseStockGroup]:
    """Non-depleted batches grouped by product"""
    await get_warehouse_or_404(db, warehouse_id)
    return build_stock_groups(await warehouse_stock_summary(db, warehouse_id))


@router.put("/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.edit")),
    warehouse_id: int,
    warehouse_in: WarehouseUpdate) -> Any:
    """Update a warehouse"""
    warehouse = await get_warehouse_or_404(db, warehouse_id)

    if warehouse_in.name and warehouse_in.name.strip().lower() != warehouse.name.lower():
        await check_name_free(db, warehouse_in.name, exclude_id=warehouse.id)
    if warehouse_in.manager_id:
        await check_manager(db, warehouse_in.manager_id)

    update_data = warehouse_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "location", "capacity", "warehouse_type", "is_active"):
            continue
        setattr(warehouse, field, value.strip() if field == "name" else value)

    await db.commit()
    await db.refresh(warehouse)

    return WarehouseResponse.model_validate(warehouse)


@router.delete("/{warehouse_id}")
async def delete_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("warehouse.delete")),
    warehouse_id: int) -> Any:
    """Soft delete; refused while batches still hold stock here"""
    warehouse = await get_warehouse_or_404(db, warehouse_id)

    stocked = await db.execute(
        select(func.count(ProductBatch.id)).where(
            ProductBatch.warehouse_id == warehouse.id,
            ProductBatch.remaining > 0
        )
    )
    if stocked.scalar():
        raise HTTPException(status_code=400, detail="Warehouse still holds stock")

    warehouse.is_deleted = True
    warehouse.is_active = False
    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="WAREHOUSE_DELETED",
        entity_type="warehouse",
        entity_id=warehouse.id,
        message=f"Deleted warehouse {warehouse.name}"
    )
    await db.commit()

    return {"message": "Warehouse deleted"}
