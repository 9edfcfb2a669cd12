"""
Transport (vehicle) API
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Transport, Staff
from posadmin.schemas.transport import (
    TransportCreate,
    TransportUpdate,
    TransportStatusUpdate,
    TransportResponse,
    TransportListResponse)

router = APIRouter()


async def get_transport_or_404(db: AsyncSession, transport_id: int) -> Transport:
    transport = await db.get(Transport, transport_id)
    if not transport or transport.is_deleted:
        raise HTTPException(status_code=404, detail="Transport not found")
    return transport


async def check_vehicle_free(db: AsyncSession, vehicle_number: str, exclude_id: int = None) -> None:
    query = select(Transport.id).where(
        func.upper(Transport.vehicle_number) == vehicle_number.strip().upper()
    )
    if exclude_id:
        query = query.where(Transport.id != exclude_id)
    if (await db.execute(query)).scalar():
        raise HTTPException(status_code=400, detail="Vehicle already created in database")


@router.get("/", response_model=TransportListResponse)
async def list_transports(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.view")),
    status: Optional[str] = Query(None, description="available/in-use/maintenance"),
    is_active: Optional[bool] = Query(None)) -> Any:
    """Vehicles by name"""
    query = select(Transport).where(Transport.is_deleted == False)
    if status:
        query = query.where(Transport.status == status)
    if is_active is not None:
        query = query.where(Transport.is_active == is_active)

    result = await db.execute(query.order_by(Transport.name, Transport.id))
    transports = result.scalars().all()

    return TransportListResponse(
        data=[TransportResponse.model_validate(t) for t in transports],
        total=len(transports)
    )


@router.post("/", response_model=TransportResponse)
async def create_transport(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.add")),
    transport_in: TransportCreate) -> Any:
    """Register a vehicle"""
    await check_vehicle_free(db, transport_in.vehicle_number)

    transport = Transport(
        **transport_in.model_dump(),
        created_by=current_staff.id
    )
    transport.vehicle_number = transport.vehicle_number.strip()
    db.add(transport)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSPORT_CREATED",
        entity_type="transport",
        entity_id=transport.id,
        message=f"Registered vehicle {transport.vehicle_number}"
    )
    await db.commit()
    await db.refresh(transport)

    return TransportResponse.model_validate(transport)


@router.get("/{transport_id}", response_model=TransportResponse)
async def get_transport(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.view")),
    transport_id: int) -> Any:
    """Vehicle details"""
    transport = await get_transport_or_404(db, transport_id)
    return TransportResponse.model_validate(transport)


@router.put("/{transport_id}", response_model=TransportResponse)
async def update_transport(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.edit")),
    transport_id: int,
    transport_in: TransportUpdate) -> Any:
    """Update a vehicle"""
    transport = await get_transport_or_404(db, transport_id)

    if transport_in.vehicle_number and transport_in.vehicle_number.strip().upper() != transport.vehicle_number.upper():
        await check_vehicle_free(db, transport_in.vehicle_number, exclude_id=transport.id)

    update_data = transport_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "transport_type", "capacity", "vehicle_number", "is_active"):
            continue
        setattr(transport, field, value.strip() if field == "vehicle_number" else value)

    await db.commit()
    await db.refresh(transport)

    return TransportResponse.model_validate(transport)


@router.patch("/{transport_id}/status", response_model=TransportResponse)
async def update_transport_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.edit")),
    transport_id: int,
    status_in: TransportStatusUpdate) -> Any:
    """Set available / in-use / maintenance"""
    transport = await get_transport_or_404(db, transport_id)
    old_status = transport.status
    transport.status = status_in.status

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSPORT_STATUS_CHANGED",
        entity_type="transport",
        entity_id=transport.id,
        details={"from": old_status, "to": status_in.status}
    )
    await db.commit()
    await db.refresh(transport)

    return TransportResponse.model_validate(transport)


@router.delete("/{transport_id}")
async def delete_transport(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("transport.delete")),
    transport_id: int) -> Any:
    """Soft delete; a vehicle on the road cannot be removed"""
    transport = await get_transport_or_404(db, transport_id)
    if transport.status == "in-use":
        raise HTTPException(status_code=400, detail="Transport is in use")

    transport.is_deleted = True
    transport.is_active = False

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="TRANSPORT_DELETED",
        entity_type="transport",
        entity_id=transport.id,
        message=f"Deleted vehicle {transport.vehicle_number}"
    )
    await db.commit()

    return {"message": "Transport deleted"}
