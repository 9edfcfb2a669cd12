"""History (audit log) API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.core.dates import day_range
from posadmin.core.deps import get_db, require_permission
from posadmin.models import AuditLog, Staff
from posadmin.schemas.audit_log import AuditLogResponse, AuditLogListResponse

router = APIRouter()


async def create_history(
    db: AsyncSession,
    *,
    staff_id: Optional[int],
    action_type: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    message: Optional[str] = None,
    details: Optional[dict] = None) -> AuditLog:
    """Add a history row to the caller's transaction (not committed here)"""
    log = AuditLog(
        performed_by=staff_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        message=message,
        details=details
    )
    db.add(log)
    return log


def build_log_response(log: AuditLog) -> AuditLogResponse:
    return AuditLogResponse(
        id=log.id,
        action_type=log.action_type,
        entity_type=log.entity_type,
        entity_id=log.entity_id,
        message=log.message,
        details=log.details,
        performed_by=log.performed_by,
        performer_name=log.performer_name,
        created_at=log.created_at)


@router.get("/", response_model=AuditLogListResponse)
async def list_history(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("audit.view")),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action_type: Optional[str] = Query(None, description="e.g. ROLE_CREATED"),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    staff_id: Optional[int] = Query(None, description="Performed by"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD")) -> Any:
    """List history entries, newest first"""
    conditions = []
    if action_type:
        conditions.append(AuditLog.action_type == action_type)
    if entity_type:
        conditions.append(AuditLog.entity_type == entity_type)
    if entity_id:
        conditions.append(AuditLog.entity_id == entity_id)
    if staff_id:
        conditions.append(AuditLog.performed_by == staff_id)
    start, end = day_range(start_date, end_date)
    if start:
        conditions.append(AuditLog.created_at >= start)
    if end:
        conditions.append(AuditLog.created_at < end)

    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    logs = result.scalars().all()

    return AuditLogListResponse(
        data=[build_log_response(log) for log in logs],
        total=total,
        page=page,
        limit=limit
    )
