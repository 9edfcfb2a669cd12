"""
HR requests API
Salary and leave requests raised by staff and decided by managers
"""
from datetime import datetime, date
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.models import LeaveRequest, SalaryRequest, Staff
from posadmin.schemas.hr_request import (
    SalaryRequestCreate,
    LeaveRequestCreate,
    RequestDecision,
    SalaryRequestResponse,
    LeaveRequestResponse,
    SalaryRequestListResponse,
    LeaveRequestListResponse)
from posadmin.services.pricing import to_money

router = APIRouter()


def build_salary_response(request: SalaryRequest) -> SalaryRequestResponse:
    return SalaryRequestResponse(
        id=request.id,
        staff_id=request.staff_id,
        staff_name=request.staff.full_name if request.staff else "",
        amount=request.amount,
        reason=request.reason,
        request_date=request.request_date,
        status=request.status,
        approved_by=request.approved_by,
        approved_by_name=request.approver.full_name if request.approver else "",
        approved_at=request.approved_at)


def build_leave_response(request: LeaveRequest) -> LeaveRequestResponse:
    return LeaveRequestResponse(
        id=request.id,
        staff_id=request.staff_id,
        staff_name=request.staff.full_name if request.staff else "",
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        days=request.days,
        reason=request.reason,
        status=request.status,
        approved_by=request.approved_by,
        approved_by_name=request.approver.full_name if request.approver else "",
        approved_at=request.approved_at,
        created_at=request.created_at)


async def load_request(db: AsyncSession, model, request_id: int):
    result = await db.execute(
        select(model)
        .where(model.id == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.unique().scalar_one_or_none()
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    return request


def decide(request, decision: RequestDecision, approver: Staff) -> None:
    if request.status != "pending":
        raise HTTPException(status_code=400, detail=f"Request already {request.status}")
    request.status = decision.status
    request.approved_by = approver.id
    request.approved_at = datetime.utcnow()


# ===== Salary requests =====

@router.get("/salary-requests", response_model=SalaryRequestListResponse)
async def list_salary_requests(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.view")),
    status: Optional[str] = Query(None, description="pending/approved/rejected"),
    staff_id: Optional[int] = Query(None)) -> Any:
    """Salary requests, newest first"""
    query = select(SalaryRequest)
    if status:
        query = query.where(SalaryRequest.status == status)
    if staff_id:
        query = query.where(SalaryRequest.staff_id == staff_id)
    result = await db.execute(query.order_by(SalaryRequest.request_date.desc(), SalaryRequest.id.desc()))
    requests = result.unique().scalars().all()
    return SalaryRequestListResponse(data=[build_salary_response(r) for r in requests], total=len(requests))


@router.post("/salary-requests", response_model=SalaryRequestResponse)
async def create_salary_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.add")),
    request_in: SalaryRequestCreate) -> Any:
    """Raise a salary request for yourself"""
    request = SalaryRequest(
        staff_id=current_staff.id,
        amount=to_money(request_in.amount),
        reason=request_in.reason,
        request_date=datetime.utcnow(),
        status="pending"
    )
    db.add(request)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALARY_REQUEST_CREATED",
        entity_type="salary_request",
        entity_id=request.id,
        details={"amount": str(request.amount)}
    )
    await db.commit()

    return build_salary_response(await load_request(db, SalaryRequest, request.id))


@router.put("/salary-requests/{request_id}/status", response_model=SalaryRequestResponse)
async def decide_salary_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.manage")),
    request_id: int,
    decision_in: RequestDecision) -> Any:
    """Approve or reject a pending salary request"""
    request = await load_request(db, SalaryRequest, request_id)
    decide(request, decision_in, current_staff)

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALARY_REQUEST_DECIDED",
        entity_type="salary_request",
        entity_id=request.id,
        details={"status": decision_in.status}
    )
    await db.commit()

    return build_salary_response(await load_request(db, SalaryRequest, request_id))


# ===== Leave requests =====

@router.get("/leave-requests", response_model=LeaveRequestListResponse)
async def list_leave_requests(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.view")),
    status: Optional[str] = Query(None, description="pending/approved/rejected"),
    staff_id: Optional[int] = Query(None)) -> Any:
    """Leave requests, newest first"""
    query = select(LeaveRequest)
    if status:
        query = query.where(LeaveRequest.status == status)
    if staff_id:
        query = query.where(LeaveRequest.staff_id == staff_id)
    result = await db.execute(query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()))
    requests = result.unique().scalars().all()
    return LeaveRequestListResponse(data=[build_leave_response(r) for r in requests], total=len(requests))


@router.post("/leave-requests", response_model=LeaveRequestResponse)
async def create_leave_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.add")),
    request_in: LeaveRequestCreate) -> Any:
    """Request leave for yourself; days count both ends"""
    request = LeaveRequest(
        staff_id=current_staff.id,
        leave_type=request_in.leave_type,
        start_date=request_in.start_date,
        end_date=request_in.end_date,
        days=(request_in.end_date - request_in.start_date).days + 1,
        reason=request_in.reason,
        status="pending"
    )
    db.add(request)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="LEAVE_REQUEST_CREATED",
        entity_type="leave_request",
        entity_id=request.id,
        details={"leave_type": request.leave_type, "days": request.days}
    )
    await db.commit()

    return build_leave_response(await load_request(db, LeaveRequest, request.id))


@router.put("/leave-requests/{request_id}/status", response_model=LeaveRequestResponse)
async def decide_leave_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("hr.manage")),
    request_id: int,
    decision_in: RequestDecision) -> Any:
    """Approve or reject a pending leave request

    Approving a leave that covers today puts the staff member on leave.
    """
    request = await load_request(db, LeaveRequest, request_id)
    decide(request, decision_in, current_staff)

    if decision_in.status == "approved" and request.covers(date.today()):
        request.staff.on_leave = True

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="LEAVE_REQUEST_DECIDED",
        entity_type="leave_request",
        entity_id=request.id,
        details={"status": decision_in.status}
    )
    await db.commit()

    return build_leave_response(await load_request(db, LeaveRequest, request_id))
