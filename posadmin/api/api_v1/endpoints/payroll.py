"""
Payroll API
Salary structures, per-month salary payments and the monthly payroll run
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.accounts import get_open_account
from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.deps import get_db, require_permission
from posadmin.core.logging_config import get_logger
from posadmin.models import Department, Expense, SalaryStructure, SalaryPayment, Staff
from posadmin.schemas.payroll import (
    SalaryComponent,
    SalaryStructureCreate,
    SalaryStructureUpdate,
    SalaryStructureResponse,
    StructureAssignment,
    SalaryPaymentCreate,
    PayrollRun,
    PaymentProcess,
    SalaryPaymentResponse,
    SalaryPaymentListResponse,
    PayrollRunResult)
from posadmin.services.pricing import to_decimal, to_money

logger = get_logger(__name__)

router = APIRouter()

SALARY_CATEGORY = "Salary"


def build_structure_response(structure: SalaryStructure) -> SalaryStructureResponse:
    return SalaryStructureResponse(
        id=structure.id,
        title=structure.title,
        department_id=structure.department_id,
        department_name=structure.department.name if structure.department else "",
        position=structure.position,
        basic_salary=structure.basic_salary,
        allowances=[SalaryComponent(**c) for c in structure.allowances or []],
        deductions=[SalaryComponent(**c) for c in structure.deductions or []],
        total_allowances=structure.total_allowances,
        total_deductions=structure.total_deductions,
        total_salary=structure.total_salary,
        status=structure.status,
        description=structure.description,
        created_at=structure.created_at,
        updated_at=structure.updated_at)


def build_payment_response(payment: SalaryPayment) -> SalaryPaymentResponse:
    return SalaryPaymentResponse(
        id=payment.id,
        staff_id=payment.staff_id,
        staff_name=payment.staff.full_name if payment.staff else "",
        structure_id=payment.structure_id,
        pay_month=payment.pay_month,
        pay_year=payment.pay_year,
        period=payment.period,
        basic_salary=payment.basic_salary,
        total_allowances=payment.total_allowances,
        total_deductions=payment.total_deductions,
        gross_salary=payment.gross_salary,
        net_salary=payment.net_salary,
        status=payment.status,
        payment_method=payment.payment_method,
        payment_date=payment.payment_date,
        account_id=payment.account_id,
        notes=payment.notes,
        created_at=payment.created_at)


def dump_components(components: List[SalaryComponent]) -> list:
    return [c.model_dump(mode="json") for c in components]


async def load_structure(db: AsyncSession, structure_id: int) -> SalaryStructure:
    structure = await db.get(SalaryStructure, structure_id)
    if not structure:
        raise HTTPException(status_code=404, detail="Salary structure not found")
    return structure


async def load_payment(db: AsyncSession, payment_id: int) -> SalaryPayment:
    payment = await db.get(SalaryPayment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Salary payment not found")
    return payment


async def load_staff(db: AsyncSession, staff_id: int, organization_id: int) -> Staff:
    staff = await db.get(Staff, staff_id)
    if not staff or staff.is_deleted or staff.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Staff not found")
    return staff


async def check_department(db: AsyncSession, department_id: Optional[int]):
    if department_id and not await db.get(Department, department_id):
        raise HTTPException(status_code=404, detail="Department not found")


async def payment_exists(db: AsyncSession, staff_id: int, pay_year: int, pay_month: int) -> bool:
    result = await db.execute(
        select(SalaryPayment.id).where(
            SalaryPayment.staff_id == staff_id,
            SalaryPayment.pay_year == pay_year,
            SalaryPayment.pay_month == pay_month
        )
    )
    return result.first() is not None


# ===== Salary structures =====

@router.get("/structures")
async def list_structures(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.view")),
    status: Optional[str] = Query(None, description="active/inactive")) -> List[SalaryStructureResponse]:
    """Salary structures by title"""
    query = select(SalaryStructure)
    if status:
        query = query.where(SalaryStructure.status == status)
    result = await db.execute(query.order_by(SalaryStructure.title))
    return [build_structure_response(s) for s in result.unique().scalars().all()]


@router.post("/structures", response_model=SalaryStructureResponse)
async def create_structure(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.add")),
    structure_in: SalaryStructureCreate) -> Any:
    """New salary structure"""
    await check_department(db, structure_in.department_id)
    structure = SalaryStructure(
        title=structure_in.title,
        department_id=structure_in.department_id,
        position=structure_in.position,
        basic_salary=to_money(structure_in.basic_salary),
        allowances=dump_components(structure_in.allowances),
        deductions=dump_components(structure_in.deductions),
        description=structure_in.description
    )
    db.add(structure)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALARY_STRUCTURE_CREATED",
        entity_type="salary_structure",
        entity_id=structure.id,
        message=structure.title,
        details={"total_salary": str(structure.total_salary)}
    )
    await db.commit()
    await db.refresh(structure)

    return build_structure_response(structure)


@router.put("/structures/{structure_id}", response_model=SalaryStructureResponse)
async def update_structure(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.edit")),
    structure_id: int,
    structure_in: SalaryStructureUpdate) -> Any:
    """Update a structure; payments already created keep their amounts"""
    structure = await load_structure(db, structure_id)
    update_data = structure_in.model_dump(exclude_unset=True)
    if "department_id" in update_data:
        await check_department(db, update_data["department_id"])

    for field, value in update_data.items():
        if value is None and field in ("title", "basic_salary", "allowances", "deductions", "status"):
            continue
        if field in ("allowances", "deductions"):
            value = dump_components(getattr(structure_in, field))
        elif field == "basic_salary":
            value = to_money(value)
        setattr(structure, field, value)

    await db.commit()
    await db.refresh(structure)

    return build_structure_response(structure)


@router.delete("/structures/{structure_id}")
async def deactivate_structure(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.edit")),
    structure_id: int) -> Any:
    """Deactivate a structure; the payroll run skips staff on it"""
    structure = await load_structure(db, structure_id)
    structure.status = "inactive"
    await db.commit()
    return {"message": "Salary structure deactivated"}


@router.put("/staff/{staff_id}/structure")
async def assign_structure(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.edit")),
    staff_id: int,
    assignment: StructureAssignment) -> Any:
    """Put a staff member on a salary structure"""
    staff = await load_staff(db, staff_id, current_staff.organization_id)
    if assignment.structure_id is not None:
        structure = await load_structure(db, assignment.structure_id)
        if structure.status != "active":
            raise HTTPException(status_code=400, detail="Salary structure is inactive")
    staff.salary_structure_id = assignment.structure_id

    await db.commit()
    return {"staff_id": staff.id, "structure_id": staff.salary_structure_id}


# ===== Salary payments =====

@router.get("/payments", response_model=SalaryPaymentListResponse)
async def list_payments(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.view")),
    pay_month: Optional[int] = Query(None, ge=1, le=12),
    pay_year: Optional[int] = Query(None),
    staff_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="pending/paid/cancelled")) -> Any:
    """Salary payments, latest period first"""
    query = select(SalaryPayment)
    if pay_month:
        query = query.where(SalaryPayment.pay_month == pay_month)
    if pay_year:
        query = query.where(SalaryPayment.pay_year == pay_year)
    if staff_id:
        query = query.where(SalaryPayment.staff_id == staff_id)
    if status:
        query = query.where(SalaryPayment.status == status)
    result = await db.execute(query.order_by(
        SalaryPayment.pay_year.desc(), SalaryPayment.pay_month.desc(), SalaryPayment.id
    ))
    payments = result.unique().scalars().all()

    return SalaryPaymentListResponse(
        data=[build_payment_response(p) for p in payments],
        total=len(payments),
        total_net=to_money(sum((to_decimal(p.net_salary) for p in payments), Decimal("0")))
    )


@router.post("/payments", response_model=SalaryPaymentResponse)
async def create_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.add")),
    payment_in: SalaryPaymentCreate) -> Any:
    """Pending salary payment for one staff member and month"""
    staff = await load_staff(db, payment_in.staff_id, current_staff.organization_id)
    structure_id = payment_in.structure_id or staff.salary_structure_id
    if not structure_id:
        raise HTTPException(status_code=400, detail="Staff member has no salary structure")
    structure = await load_structure(db, structure_id)
    if await payment_exists(db, staff.id, payment_in.pay_year, payment_in.pay_month):
        raise HTTPException(status_code=400, detail="Salary for this period already exists")

    payment = SalaryPayment(
        staff=staff,
        pay_month=payment_in.pay_month,
        pay_year=payment_in.pay_year,
        payment_method=payment_in.payment_method,
        notes=payment_in.notes,
        created_by=current_staff.id
    )
    payment.apply_structure(structure)
    db.add(payment)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALARY_PAYMENT_CREATED",
        entity_type="salary_payment",
        entity_id=payment.id,
        message=f"{staff.full_name} {payment.period}",
        details={"net_salary": str(payment.net_salary)}
    )
    await db.commit()
    await db.refresh(payment)

    return build_payment_response(payment)


@router.post("/generate", response_model=PayrollRunResult)
async def generate_payroll(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.manage")),
    run: PayrollRun) -> Any:
    """
    Monthly payroll run

    Creates a pending payment for every active staff member on an active
    structure who has none for the month yet.
    """
    result = await db.execute(
        select(Staff).where(
            Staff.organization_id == current_staff.organization_id,
            Staff.is_deleted == False,
            Staff.is_active == True,
            Staff.salary_structure_id.isnot(None)
        ).order_by(Staff.id)
    )
    candidates = result.unique().scalars().all()

    created = []
    skipped = 0
    for staff in candidates:
        structure = staff.salary_structure
        if not structure or structure.status != "active":
            skipped += 1
            continue
        if await payment_exists(db, staff.id, run.pay_year, run.pay_month):
            skipped += 1
            continue
        payment = SalaryPayment(
            staff=staff,
            pay_month=run.pay_month,
            pay_year=run.pay_year,
            created_by=current_staff.id
        )
        payment.apply_structure(structure)
        db.add(payment)
        created.append(payment)
    await db.flush()

    period = f"{run.pay_year:04d}-{run.pay_month:02d}"
    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="PAYROLL_GENERATED",
        entity_type="salary_payment",
        entity_id=None,
        message=period,
        details={"created": len(created), "skipped": skipped}
    )
    await db.commit()
    logger.info(f"💰 Payroll {period}: {len(created)} created, {skipped} skipped")

    return PayrollRunResult(
        period=period,
        created=[build_payment_response(p) for p in created],
        skipped=skipped
    )


@router.post("/payments/{payment_id}/process", response_model=SalaryPaymentResponse)
async def process_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.manage")),
    payment_id: int,
    process_in: PaymentProcess) -> Any:
    """
    Pay a pending salary

    Books a paid 'Salary' expense. With an account, the net salary also
    leaves that account's balance.
    """
    payment = await load_payment(db, payment_id)
    if payment.status != "pending":
        raise HTTPException(status_code=400, detail=f"Salary payment already {payment.status}")

    net = to_money(payment.net_salary)
    if process_in.account_id:
        account = await get_open_account(db, process_in.account_id)
        if to_decimal(account.balance) < net:
            raise HTTPException(status_code=400, detail="Insufficient funds")
        account.balance = to_money(to_decimal(account.balance) - net)
        payment.account_id = account.id
    if process_in.payment_method:
        payment.payment_method = process_in.payment_method

    now = datetime.utcnow()
    payment.status = "paid"
    payment.payment_date = now
    payment.processed_by = current_staff.id

    db.add(Expense(
        title=f"Salary {payment.staff.full_name} {payment.period}",
        category=SALARY_CATEGORY,
        amount=net,
        date=now,
        status="paid",
        account_id=payment.account_id,
        payment_method=payment.payment_method,
        created_by=current_staff.id
    ))

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="SALARY_PAID",
        entity_type="salary_payment",
        entity_id=payment.id,
        message=f"{payment.staff.full_name} {payment.period}",
        details={"net_salary": str(net), "account_id": payment.account_id}
    )
    await db.commit()
    await db.refresh(payment)

    return build_payment_response(payment)


@router.post("/payments/{payment_id}/cancel", response_model=SalaryPaymentResponse)
async def cancel_payment(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("payroll.manage")),
    payment_id: int) -> Any:
    """Cancel a pending salary payment"""
    payment = await load_payment(db, payment_id)
    if payment.status != "pending":
        raise HTTPException(status_code=400, detail=f"Salary payment already {payment.status}")
    payment.status = "cancelled"

    await db.commit()
    await db.refresh(payment)

    return build_payment_response(payment)
