"""
Stock transfer API
Moving stock between warehouses: request, approve (creates the shipment),
complete (moves the batches) or cancel
"""
import logging
import random
from datetime import datetime, timedelta
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.shipments import generate_shipment_numbers, release_transport
from posadmin.api.api_v1.endpoints.warehouses import (
    get_active_warehouse,
    get_warehouse_or_404,
    build_stock_groups)
from posadmin.core.config import settings
from posadmin.core.deps import get_db, require_permission
from posadmin.models import (
    StockTransfer,
    StockTransferItem,
    Shipment,
    ShipmentItem,
    Product,
    Transport,
    Warehouse,
    Staff)
from posadmin.schemas.stock_transfer import (
    StockTransferCreate,
    StockTransferApprove,
    StockTransferItemResponse,
    StockTransferResponse)
from posadmin.schemas.warehouse import WarehouseSimple, WarehouseStockGroup
from posadmin.services.inventory import consume_fifo, create_batch, warehouse_stock_summary, weighted_unit_value
from posadmin.services.pricing import to_decimal, to_money

logger = logging.getLogger(__name__)

router = APIRouter()


def build_transfer_response(transfer: StockTransfer) -> StockTransferResponse:
    return StockTransferResponse(
        id=transfer.id,
        transfer_number=transfer.transfer_number,
        from_warehouse_id=transfer.from_warehouse_id,
        from_warehouse_name=transfer.from_warehouse.name if transfer.from_warehouse else "",
        to_warehouse_id=transfer.to_warehouse_id,
        to_warehouse_name=transfer.to_warehouse.name if transfer.to_warehouse else "",
        items=[
            StockTransferItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else "",
                product_sku=item.product.sku if item.product else None,
                quantity=item.quantity,
                unit_cost=item.unit_cost,
                total_cost=to_money(item.total_cost))
            for item in transfer.items
        ],
        total_quantity=transfer.total_quantity,
        total_value=to_money(transfer.total_value),
        status=transfer.status,
        reason=transfer.reason,
        notes=transfer.notes,
        requested_by=transfer.requested_by,
        requested_by_name=transfer.requester.full_name if transfer.requester else "",
        approved_by=transfer.approved_by,
        approved_by_name=transfer.approver.full_name if transfer.approver else "",
        shipment_id=transfer.shipment_id,
        transfer_date=transfer.transfer_date,
        completed_date=transfer.completed_date,
        created_at=transfer.created_at,
        updated_at=transfer.updated_at)


async def load_transfer(db: AsyncSession, transfer_id: int) -> StockTransfer:
    result = await db.execute(
        select(StockTransfer)
        .where(StockTransfer.id == transfer_id)
        .execution_options(populate_existing=True)
    )
    transfer = result.unique().scalar_one_or_none()
    if not transfer:
        raise HTTPException(status_code=404, detail="Stock transfer not found")
    return transfer


async def generate_transfer_number(db: AsyncSession) -> str:
    """ST + 6 digits, unused"""
    while True:
        transfer_number = f"ST{random.randint(0, 999999):06d}"
        taken = await db.execute(
            select(func.count(StockTransfer.id)).where(StockTransfer.transfer_number == transfer_number)
        )
        if not taken.scalar():
            return transfer_number


async def load_linked_shipment(db: AsyncSession, transfer: StockTransfer) -> Optional[Shipment]:
    if not transfer.shipment_id:
        return None
    result = await db.execute(select(Shipment).where(Shipment.id == transfer.shipment_id))
    return result.unique().scalar_one_or_none()


@router.get("/")
async def list_transfers(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.view")),
    status: Optional[str] = Query(None, description="pending/in-transit/completed/cancelled"),
    warehouse_id: Optional[int] = Query(None, description="Source or destination")) -> List[StockTransferResponse]:
    """Transfers, newest first"""
    query = select(StockTransfer)
    if status:
        query = query.where(StockTransfer.status == status)
    if warehouse_id:
        query = query.where(or_(
            StockTransfer.from_warehouse_id == warehouse_id,
            StockTransfer.to_warehouse_id == warehouse_id
        ))
    result = await db.execute(query.order_by(StockTransfer.created_at.desc(), StockTransfer.id.desc()))
    return [build_transfer_response(t) for t in result.unique().scalars().all()]


@router.get("/warehouses")
async def list_transfer_warehouses(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.view"))) -> List[WarehouseSimple]:
    """Warehouses that can send or receive stock"""
    result = await db.execute(
        select(Warehouse)
        .where(Warehouse.is_active == True, Warehouse.is_deleted == False)
        .order_by(Warehouse.name)
    )
    return [WarehouseSimple.model_validate(w) for w in result.scalars().all()]


@router.get("/warehouse-stock/{warehouse_id}")
async def get_transferable_stock(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.view")),
    warehouse_id: int) -> List[WarehouseStockGroup]:
    """Stock of a source warehouse, grouped by product"""
    await get_warehouse_or_404(db, warehouse_id)
    return build_stock_groups(await warehouse_stock_summary(db, warehouse_id))


@router.post("/", response_model=StockTransferResponse)
async def create_transfer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.add")),
    transfer_in: StockTransferCreate) -> Any:
    """Request a stock transfer"""
    await get_active_warehouse(db, transfer_in.from_warehouse_id, "Source warehouse")
    await get_active_warehouse(db, transfer_in.to_warehouse_id, "Destination warehouse")

    product_ids = [item.product_id for item in transfer_in.items]
    if len(set(product_ids)) != len(product_ids):
        raise HTTPException(status_code=400, detail="Each product can appear only once per transfer")
    for product_id in product_ids:
        product = await db.get(Product, product_id)
        if not product or product.is_deleted:
            raise HTTPException(status_code=400, detail=f"Product {product_id} not found")

    transfer = StockTransfer(
        transfer_number=await generate_transfer_number(db),
        from_warehouse_id=transfer_in.from_warehouse_id,
        to_warehouse_id=transfer_in.to_warehouse_id,
        status="pending",
        reason=transfer_in.reason,
        notes=transfer_in.notes,
        requested_by=current_staff.id,
        transfer_date=datetime.utcnow(),
        items=[
            StockTransferItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_cost=to_money(item.unit_cost))
            for item in transfer_in.items
        ]
    )
    db.add(transfer)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSFER_CREATED",
        entity_type="stock_transfer",
        entity_id=transfer.id,
        message=f"Transfer {transfer.transfer_number} requested"
    )
    await db.commit()

    return build_transfer_response(await load_transfer(db, transfer.id))


@router.get("/{transfer_id}", response_model=StockTransferResponse)
async def get_transfer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.view")),
    transfer_id: int) -> Any:
    """Transfer details"""
    return build_transfer_response(await load_transfer(db, transfer_id))


@router.post("/{transfer_id}/approve", response_model=StockTransferResponse)
async def approve_transfer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.manage")),
    transfer_id: int,
    approve_in: Optional[StockTransferApprove] = None) -> Any:
    """Approve a pending transfer and put it on a shipment"""
    approve_in = approve_in or StockTransferApprove()
    transfer = await load_transfer(db, transfer_id)
    if transfer.status != "pending":
        raise HTTPException(status_code=400, detail="Only pending transfers can be approved")

    transport = None
    if approve_in.transport_id:
        transport = await db.get(Transport, approve_in.transport_id)
        if not transport or transport.is_deleted:
            raise HTTPException(status_code=400, detail="Transport not found")

    now = datetime.utcnow()
    shipment_number, tracking_number = await generate_shipment_numbers(db)
    shipment = Shipment(
        shipment_number=shipment_number,
        tracking_number=tracking_number,
        origin_warehouse_id=transfer.from_warehouse_id,
        destination_warehouse_id=transfer.to_warehouse_id,
        transport_id=transport.id if transport else None,
        stock_transfer_id=transfer.id,
        driver_name=transport.driver_name if transport else None,
        driver_contact=transport.driver_contact if transport else None,
        status="in-transit",
        priority="medium",
        scheduled_pickup_date=now,
        actual_pickup_date=now,
        estimated_delivery_date=now + timedelta(days=settings.TRANSFER_DELIVERY_DAYS),
        location_history=[],
        notes=approve_in.notes or f"Stock transfer {transfer.transfer_number}",
        created_by=current_staff.id,
        items=[
            ShipmentItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_cost,
                total_value=to_money(item.total_cost),
                condition="good")
            for item in transfer.items
        ]
    )
    shipment.recalculate_total()
    if transport:
        transport.status = "in-use"
    db.add(shipment)
    await db.flush()

    transfer.status = "in-transit"
    transfer.approved_by = current_staff.id
    transfer.shipment_id = shipment.id

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSFER_APPROVED",
        entity_type="stock_transfer",
        entity_id=transfer.id,
        message=f"Transfer {transfer.transfer_number} shipped as {shipment.shipment_number}"
    )
    await db.commit()

    return build_transfer_response(await load_transfer(db, transfer_id))


@router.post("/{transfer_id}/complete", response_model=StockTransferResponse)
async def complete_transfer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.manage")),
    transfer_id: int) -> Any:
    """
    Move the stock

    Every item is taken FIFO from the source warehouse and lands as a new
    batch in the destination warehouse. Everything is written in one commit;
    a shortage on any item raises 400 and leaves both warehouses untouched.
    """
    transfer = await load_transfer(db, transfer_id)
    if not transfer.is_open:
        raise HTTPException(status_code=400, detail=f"Transfer already {transfer.status}")
    shipment = await load_linked_shipment(db, transfer)
    if shipment and shipment.status == "cancelled":
        raise HTTPException(status_code=400, detail="The transfer's shipment was cancelled")

    now = datetime.utcnow()
    expiry_date = now + timedelta(days=settings.DEFAULT_BATCH_SHELF_LIFE_DAYS)
    moved = []
    for item in transfer.items:
        allocations = await consume_fifo(db, item.product_id, transfer.from_warehouse_id, item.quantity)
        code = item.product.sku if item.product and item.product.sku else str(item.product_id)
        batch = await create_batch(
            db,
            product_id=item.product_id,
            warehouse_id=transfer.to_warehouse_id,
            unit_cost=to_decimal(item.unit_cost),
            quantity=item.quantity,
            selling_price=weighted_unit_value(allocations, "selling_price"),
            expiry_date=expiry_date,
            transfer_id=transfer.id,
            batch_number=f"TR-{transfer.transfer_number}-{code}",
            notes=f"Transferred from {transfer.from_warehouse.name if transfer.from_warehouse else transfer.from_warehouse_id}",
            created_by=current_staff.id
        )
        moved.append({
            "product_id": item.product_id,
            "quantity": item.quantity,
            "batch_number": batch.batch_number,
            "source_batches": [a.batch.batch_number for a in allocations],
        })

    if shipment and shipment.status != "delivered":
        if not shipment.actual_pickup_date:
            shipment.actual_pickup_date = now
        shipment.status = "delivered"
        shipment.actual_delivery_date = now
        release_transport(shipment.transport)

    transfer.status = "completed"
    transfer.completed_date = now

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSFER_COMPLETED",
        entity_type="stock_transfer",
        entity_id=transfer.id,
        message=f"Transfer {transfer.transfer_number} completed",
        details={"items": moved}
    )
    await db.commit()

    logger.info(f"Stock transfer {transfer.transfer_number} completed: {len(moved)} items")
    return build_transfer_response(await load_transfer(db, transfer_id))


@router.post("/{transfer_id}/cancel", response_model=StockTransferResponse)
async def cancel_transfer(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transfer.manage")),
    transfer_id: int) -> Any:
    """Cancel an open transfer; its shipment is cancelled too"""
    transfer = await load_transfer(db, transfer_id)
    if not transfer.is_open:
        raise HTTPException(status_code=400, detail=f"Transfer already {transfer.status}")

    shipment = await load_linked_shipment(db, transfer)
    if shipment and shipment.status not in ("delivered", "cancelled"):
        shipment.status = "cancelled"
        release_transport(shipment.transport)

    transfer.status = "cancelled"

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSFER_CANCELLED",
        entity_type="stock_transfer",
        entity_id=transfer.id,
        message=f"Transfer {transfer.transfer_number} cancelled"
    )
    await db.commit()

    return build_transfer_response(await load_transfer(db, transfer_id))
