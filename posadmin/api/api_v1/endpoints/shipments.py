"""
Shipment API
Tracking, status workflow, quality checks and stock receiving
"""
import random
import time
from datetime import datetime
from typing import Any, List, Tuple
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.api.api_v1.endpoints.warehouses import get_active_warehouse
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Shipment, ShipmentItem, Product, Transport, Staff
from posadmin.models.shipment import SHIPMENT_STATUSES
from posadmin.schemas.shipment import (
    ShipmentCreate,
    ShipmentStatusUpdate,
    ShipmentLocationUpdate,
    QualityCheckCreate,
    ShipmentReceive,
    ShipmentItemResponse,
    ShipmentResponse,
    ShipmentAnalytics)
from posadmin.services.inventory import create_batch
from posadmin.services.pricing import to_decimal, to_money

router = APIRouter()


def build_shipment_response(shipment: Shipment) -> ShipmentResponse:
    return ShipmentResponse(
        id=shipment.id,
        shipment_number=shipment.shipment_number,
        tracking_number=shipment.tracking_number,
        origin_warehouse_id=shipment.origin_warehouse_id,
        origin_warehouse_name=shipment.origin_warehouse.name if shipment.origin_warehouse else "",
        destination_warehouse_id=shipment.destination_warehouse_id,
        destination_warehouse_name=shipment.destination_warehouse.name if shipment.destination_warehouse else "",
        transport_id=shipment.transport_id,
        transport_name=shipment.transport.display_name if shipment.transport else "",
        stock_transfer_id=shipment.stock_transfer_id,
        driver_name=shipment.driver_name,
        driver_contact=shipment.driver_contact,
        items=[
            ShipmentItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else "",
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_value=item.total_value,
                batch_number=item.batch_number,
                expiry_date=item.expiry_date,
                condition=item.condition,
                received_quantity=item.received_quantity,
                notes=item.notes)
            for item in shipment.items
        ],
        total_value=shipment.total_value or 0,
        status=shipment.status,
        priority=shipment.priority or "medium",
        scheduled_pickup_date=shipment.scheduled_pickup_date,
        actual_pickup_date=shipment.actual_pickup_date,
        estimated_delivery_date=shipment.estimated_delivery_date,
        actual_delivery_date=shipment.actual_delivery_date,
        temperature_required=bool(shipment.temperature_required),
        min_temperature=shipment.min_temperature,
        max_temperature=shipment.max_temperature,
        insurance_required=bool(shipment.insurance_required),
        insurance_value=shipment.insurance_value,
        current_location=shipment.current_location,
        location_history=shipment.location_history or [],
        quality_check=shipment.quality_check,
        notes=shipment.notes,
        delivery_notes=shipment.delivery_notes,
        created_at=shipment.created_at,
        updated_at=shipment.updated_at)


async def load_shipment(db: AsyncSession, shipment_id: int) -> Shipment:
    result = await db.execute(
        select(Shipment)
        .where(Shipment.id == shipment_id, Shipment.is_deleted == False)
        .execution_options(populate_existing=True)
    )
    shipment = result.unique().scalar_one_or_none()
    if not shipment:
        raise HTTPException(status_code=404, detail="Shipment not found")
    return shipment


async def generate_shipment_numbers(db: AsyncSession) -> Tuple[str, str]:
    """(SH + millis + 3 random digits, TK + millis + 4 random digits), unused ones"""
    while True:
        millis = int(time.time() * 1000)
        shipment_number = f"SH{millis}{random.randint(0, 999):03d}"
        tracking_number = f"TK{millis}{random.randint(0, 9999):04d}"
        taken = await db.execute(
            select(func.count(Shipment.id)).where(
                (Shipment.shipment_number == shipment_number)
                | (Shipment.tracking_number == tracking_number)
            )
        )
        if not taken.scalar():
            return shipment_number, tracking_number


def release_transport(transport: Transport) -> None:
    if transport and transport.status == "in-use":
        transport.status = "available"


@router.get("/")
async def list_shipments(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.view"))) -> List[ShipmentResponse]:
    """All shipments, newest first"""
    result = await db.execute(
        select(Shipment)
        .where(Shipment.is_deleted == False)
        .order_by(Shipment.created_at.desc(), Shipment.id.desc())
    )
    return [build_shipment_response(s) for s in result.unique().scalars().all()]


@router.get("/analytics", response_model=ShipmentAnalytics)
async def shipment_analytics(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.view"))) -> Any:
    """Counters by status and the five most recent shipments"""
    counts = dict((await db.execute(
        select(Shipment.status, func.count(Shipment.id))
        .where(Shipment.is_deleted == False)
        .group_by(Shipment.status)
    )).all())

    recent = await db.execute(
        select(Shipment)
        .where(Shipment.is_deleted == False)
        .order_by(Shipment.created_at.desc(), Shipment.id.desc())
        .limit(5)
    )

    return ShipmentAnalytics(
        total=sum(counts.values()),
        pending=counts.get("pending", 0),
        in_transit=counts.get("in-transit", 0),
        delivered=counts.get("delivered", 0),
        delayed_or_damaged=counts.get("delayed", 0) + counts.get("damaged", 0),
        recent=[build_shipment_response(s) for s in recent.unique().scalars().all()]
    )


@router.get("/status/{status}")
async def list_shipments_by_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.view")),
    status: str) -> List[ShipmentResponse]:
    """Shipments in one status, by scheduled pickup"""
    if status not in SHIPMENT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    result = await db.execute(
        select(Shipment)
        .where(Shipment.is_deleted == False, Shipment.status == status)
        .order_by(Shipment.scheduled_pickup_date.asc(), Shipment.id.asc())
    )
    return [build_shipment_response(s) for s in result.unique().scalars().all()]


@router.post("/", response_model=ShipmentResponse)
async def create_shipment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.add")),
    shipment_in: ShipmentCreate) -> Any:
    """Create a shipment; the transport is marked in use"""
    transport = await db.get(Transport, shipment_in.transport_id)
    if not transport or transport.is_deleted:
        raise HTTPException(status_code=400, detail="Transport not found")
    await get_active_warehouse(db, shipment_in.origin_warehouse_id, "Origin warehouse")
    await get_active_warehouse(db, shipment_in.destination_warehouse_id, "Destination warehouse")

    items = []
    for item_in in shipment_in.items:
        product = await db.get(Product, item_in.product_id)
        if not product or product.is_deleted:
            raise HTTPException(status_code=400, detail=f"Product {item_in.product_id} not found")
        items.append(ShipmentItem(
            product_id=item_in.product_id,
            quantity=item_in.quantity,
            unit_price=to_money(item_in.unit_price),
            total_value=to_money(to_decimal(item_in.unit_price) * item_in.quantity),
            batch_number=item_in.batch_number,
            expiry_date=item_in.expiry_date,
            condition="good",
            notes=item_in.notes
        ))

    shipment_number, tracking_number = await generate_shipment_numbers(db)
    shipment = Shipment(
        shipment_number=shipment_number,
        tracking_number=tracking_number,
        origin_warehouse_id=shipment_in.origin_warehouse_id,
        destination_warehouse_id=shipment_in.destination_warehouse_id,
        transport_id=transport.id,
        driver_name=transport.driver_name,
        driver_contact=transport.driver_contact,
        status="pending",
        priority=shipment_in.priority,
        scheduled_pickup_date=shipment_in.scheduled_pickup_date or datetime.utcnow(),
        estimated_delivery_date=shipment_in.estimated_delivery_date,
        temperature_required=shipment_in.temperature_required,
        min_temperature=shipment_in.min_temperature,
        max_temperature=shipment_in.max_temperature,
        insurance_required=shipment_in.insurance_required,
        insurance_value=shipment_in.insurance_value,
        location_history=[],
        notes=shipment_in.notes,
        created_by=current_staff.id,
        items=items
    )
    shipment.recalculate_total()
    transport.status = "in-use"

    db.add(shipment)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SHIPMENT_CREATED",
        entity_type="shipment",
        entity_id=shipment.id,
        message=f"Shipment {shipment.shipment_number}"
    )
    await db.commit()

    return build_shipment_response(await load_shipment(db, shipment.id))


@router.get("/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.view")),
    shipment_id: int) -> Any:
    """Shipment details"""
    return build_shipment_response(await load_shipment(db, shipment_id))


@router.patch("/{shipment_id}/status", response_model=ShipmentResponse)
async def update_shipment_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.manage")),
    shipment_id: int,
    status_in: ShipmentStatusUpdate) -> Any:
    """Move a shipment along its workflow"""
    shipment = await load_shipment(db, shipment_id)
    old_status = shipment.status

    # transfer shipments close with the transfer
    if shipment.stock_transfer_id and status_in.status in ("delivered", "cancelled"):
        action = "complete" if status_in.status == "delivered" else "cancel"
        raise HTTPException(
            status_code=400,
            detail=f"This shipment belongs to a stock transfer; {action} the transfer instead"
        )
    if not shipment.can_transition_to(status_in.status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change status from {old_status} to {status_in.status}"
        )

    now = datetime.utcnow()
    shipment.status = status_in.status
    if status_in.status == "in-transit" and not shipment.actual_pickup_date:
        shipment.actual_pickup_date = now
    if status_in.status == "delivered":
        shipment.actual_delivery_date = now
        if status_in.delivery_notes:
            shipment.delivery_notes = status_in.delivery_notes
    if status_in.status in ("delivered", "cancelled"):
        release_transport(shipment.transport)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SHIPMENT_STATUS_CHANGED",
        entity_type="shipment",
        entity_id=shipment.id,
        details={"from": old_status, "to": status_in.status}
    )
    await db.commit()

    return build_shipment_response(await load_shipment(db, shipment_id))


@router.post("/{shipment_id}/location", response_model=ShipmentResponse)
async def update_shipment_location(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.edit")),
    shipment_id: int,
    location_in: ShipmentLocationUpdate) -> Any:
    """Set the current location; the previous one goes to the history"""
    shipment = await load_shipment(db, shipment_id)

    location = {
        **location_in.model_dump(),
        "updated_at": datetime.utcnow().isoformat(),
    }
    # JSON columns are not mutation-tracked, assign new objects
    shipment.location_history = [*(shipment.location_history or []), location]
    shipment.current_location = location

    await db.commit()

    return build_shipment_response(await load_shipment(db, shipment_id))


@router.post("/{shipment_id}/quality-check", response_model=ShipmentResponse)
async def add_quality_check(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.edit")),
    shipment_id: int,
    check_in: QualityCheckCreate) -> Any:
    """Record the quality check of a shipment"""
    shipment = await load_shipment(db, shipment_id)

    shipment.quality_check = {
        "checked_by": current_staff.id,
        "checked_by_name": current_staff.full_name,
        "checked_at": datetime.utcnow().isoformat(),
        "results": check_in.results,
        "issues": check_in.issues,
        "approved": check_in.approved,
    }

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SHIPMENT_QUALITY_CHECKED",
        entity_type="shipment",
        entity_id=shipment.id,
        details={"approved": check_in.approved, "issues": len(check_in.issues)}
    )
    await db.commit()

    return build_shipment_response(await load_shipment(db, shipment_id))


@router.post("/{shipment_id}/receive", response_model=ShipmentResponse)
async def receive_shipment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("shipment.manage")),
    shipment_id: int,
    receive_in: ShipmentReceive) -> Any:
    """
    Receive a shipment into the destination warehouse

    Good items become batches; damaged and expired items are recorded on the
    shipment line only. Transfer shipments are received by completing the
    transfer.
    """
    shipment = await load_shipment(db, shipment_id)
    if shipment.stock_transfer_id:
        raise HTTPException(
            status_code=400,
            detail="This shipment belongs to a stock transfer; complete the transfer instead"
        )
    if shipment.status == "cancelled":
        raise HTTPException(status_code=400, detail="Shipment already cancelled")
    # a shipment marked delivered by status can still be booked in once
    if shipment.is_received:
        raise HTTPException(status_code=400, detail="Shipment already received")

    lines = {item.id: item for item in shipment.items}
    seen = set()
    for receive_item in receive_in.items:
        item = lines.get(receive_item.item_id)
        if item is None:
            raise HTTPException(status_code=400, detail=f"Item {receive_item.item_id} is not on this shipment")
        if receive_item.item_id in seen:
            raise HTTPException(status_code=400, detail=f"Item {receive_item.item_id} listed twice")
        seen.add(receive_item.item_id)
        if receive_item.received_quantity > item.quantity:
            raise HTTPException(status_code=400, detail=f"Received quantity exceeds shipped quantity for item {item.id}")

    stocked = []
    for receive_item in receive_in.items:
        item = lines[receive_item.item_id]
        item.received_quantity = receive_item.received_quantity
        item.condition = receive_item.condition
        if receive_item.notes:
            item.notes = receive_item.notes

        if receive_item.condition != "good" or receive_item.received_quantity == 0:
            continue

        unit_cost = receive_item.unit_cost if receive_item.unit_cost is not None else item.unit_price
        batch = await create_batch(
            db,
            product_id=item.product_id,
            warehouse_id=shipment.destination_warehouse_id,
            unit_cost=unit_cost,
            quantity=receive_item.received_quantity,
            selling_price=receive_item.selling_price,
            margin=receive_item.margin,
            expiry_date=receive_item.expiry_date or item.expiry_date,
            notes=f"Received from shipment {shipment.shipment_number}",
            created_by=current_staff.id
        )
        stocked.append(batch.batch_number)

    now = datetime.utcnow()
    if not shipment.actual_pickup_date:
        shipment.actual_pickup_date = now
    if receive_in.delivery_notes:
        shipment.delivery_notes = receive_in.delivery_notes
    # a delivered shipment has already freed its transport
    if shipment.status != "delivered":
        shipment.status = "delivered"
        shipment.actual_delivery_date = now
        release_transport(shipment.transport)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SHIPMENT_RECEIVED",
        entity_type="shipment",
        entity_id=shipment.id,
        message=f"Received shipment {shipment.shipment_number}",
        details={"batches": stocked}
    )
    await db.commit()

    return build_shipment_response(await load_shipment(db, shipment_id))
