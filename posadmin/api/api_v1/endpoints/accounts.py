"""Payment accounts, expenses and other income API"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.dates import day_range
from posadmin.core.deps import get_db, require_permission
from posadmin.models import PaymentAccount, Expense, Income, Staff
from posadmin.models.finance import TRANSFER_CATEGORY
from posadmin.schemas.finance import (
    ExpenseCreate,
    ExpenseUpdate,
    IncomeCreate,
    IncomeUpdate,
    FinanceEntryResponse,
    FinanceEntryListResponse,
    PaymentAccountCreate,
    PaymentAccountUpdate,
    PaymentAccountResponse,
    FundsTransfer,
    FundsTransferResult,
    AccountTransaction,
    AccountTransactionList,
    BalanceSheet)
from posadmin.services.pricing import to_decimal, to_money

router = APIRouter()


async def list_entries(
    db: AsyncSession,
    model,
    start_date: Optional[str],
    end_date: Optional[str],
    category: Optional[str],
    status: Optional[str]
) -> FinanceEntryListResponse:
    query = select(model)
    start, end = day_range(start_date, end_date)
    if start:
        query = query.where(model.date >= start)
    if end:
        query = query.where(model.date < end)
    if category:
        query = query.where(model.category == category)
    if status:
        query = query.where(model.status == status)

    result = await db.execute(query.order_by(model.date.desc(), model.id.desc()))
    entries = result.scalars().all()
    return FinanceEntryListResponse(
        data=[FinanceEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
        total_amount=to_money(sum((to_decimal(e.amount) for e in entries), Decimal("0")))
    )


async def get_entry_or_404(db: AsyncSession, model, entry_id: int, label: str):
    entry = await db.get(model, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return entry


def apply_update(entry, entry_in) -> None:
    update_data = entry_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("title", "category", "amount", "date", "status"):
            continue
        setattr(entry, field, to_money(value) if field == "amount" else value)


async def get_open_account(db: AsyncSession, account_id: int) -> PaymentAccount:
    account = await db.get(PaymentAccount, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    if account.status == "closed":
        raise HTTPException(status_code=400, detail=f"Account {account.name} is closed")
    return account


# ===== Expenses =====

@router.get("/expenses", response_model=FinanceEntryListResponse)
async def list_expenses(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("expense.view")),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="pending/paid")) -> Any:
    """Expenses, latest first"""
    return await list_entries(db, Expense, start_date, end_date, category, status)


@router.post("/expenses", response_model=FinanceEntryResponse)
async def create_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("expense.add")),
    expense_in: ExpenseCreate) -> Any:
    """Record an expense"""
    if expense_in.account_id:
        await get_open_account(db, expense_in.account_id)
    expense = Expense(
        title=expense_in.title,
        category=expense_in.category,
        amount=to_money(expense_in.amount),
        date=expense_in.date or datetime.utcnow(),
        status=expense_in.status,
        account_id=expense_in.account_id,
        payment_method=expense_in.payment_method,
        notes=expense_in.notes,
        created_by=current_staff.id
    )
    db.add(expense)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="EXPENSE_CREATED",
        entity_type="expense",
        entity_id=expense.id,
        message=expense.title,
        details={"amount": str(expense.amount)}
    )
    await db.commit()
    await db.refresh(expense)

    return FinanceEntryResponse.model_validate(expense)


@router.put("/expenses/{expense_id}", response_model=FinanceEntryResponse)
async def update_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("expense.edit")),
    expense_id: int,
    expense_in: ExpenseUpdate) -> Any:
    """Update an expense"""
    expense = await get_entry_or_404(db, Expense, expense_id, "Expense")
    apply_update(expense, expense_in)

    await db.commit()
    await db.refresh(expense)

    return FinanceEntryResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}")
async def delete_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("expense.delete")),
    expense_id: int) -> Any:
    """Delete an expense"""
    expense = await get_entry_or_404(db, Expense, expense_id, "Expense")

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="EXPENSE_DELETED",
        entity_type="expense",
        entity_id=expense.id,
        message=expense.title,
        details={"amount": str(expense.amount)}
    )
    await db.delete(expense)
    await db.commit()

    return {"message": "Expense deleted"}


# ===== Income =====

@router.get("/incomes", response_model=FinanceEntryListResponse)
async def list_incomes(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("income.view")),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="pending/received")) -> Any:
    """Income entries, latest first"""
    return await list_entries(db, Income, start_date, end_date, category, status)


@router.post("/incomes", response_model=FinanceEntryResponse)
async def create_income(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("income.add")),
    income_in: IncomeCreate) -> Any:
    """Record income"""
    if income_in.account_id:
        await get_open_account(db, income_in.account_id)
    income = Income(
        title=income_in.title,
        category=income_in.category,
        amount=to_money(income_in.amount),
        date=income_in.date or datetime.utcnow(),
        status=income_in.status,
        account_id=income_in.account_id,
        notes=income_in.notes,
        created_by=current_staff.id
    )
    db.add(income)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="INCOME_CREATED",
        entity_type="income",
        entity_id=income.id,
        message=income.title,
        details={"amount": str(income.amount)}
    )
    await db.commit()
    await db.refresh(income)

    return FinanceEntryResponse.model_validate(income)


@router.put("/incomes/{income_id}", response_model=FinanceEntryResponse)
async def update_income(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("income.edit")),
    income_id: int,
    income_in: IncomeUpdate) -> Any:
    """Update an income entry"""
    income = await get_entry_or_404(db, Income, income_id, "Income")
    apply_update(income, income_in)

    await db.commit()
    await db.refresh(income)

    return FinanceEntryResponse.model_validate(income)


@router.delete("/incomes/{income_id}")
async def delete_income(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("income.delete")),
    income_id: int) -> Any:
    """Delete an income entry"""
    income = await get_entry_or_404(db, Income, income_id, "Income")

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="INCOME_DELETED",
        entity_type="income",
        entity_id=income.id,
        message=income.title,
        details={"amount": str(income.amount)}
    )
    await db.delete(income)
    await db.commit()

    return {"message": "Income deleted"}


# ===== Payment accounts =====

@router.get("/payment-accounts")
async def list_payment_accounts(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.view")),
    account_type: Optional[str] = Query(None, description="cash/bank/credit/asset/liability/equity"),
    include_closed: bool = Query(False)) -> List[PaymentAccountResponse]:
    """Payment accounts by name"""
    query = select(PaymentAccount)
    if account_type:
        query = query.where(PaymentAccount.account_type == account_type)
    if not include_closed:
        query = query.where(PaymentAccount.status != "closed")
    result = await db.execute(query.order_by(PaymentAccount.name))
    return [PaymentAccountResponse.model_validate(a) for a in result.scalars().all()]


@router.post("/payment-accounts", response_model=PaymentAccountResponse)
async def create_payment_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.add")),
    account_in: PaymentAccountCreate) -> Any:
    """Open an account with an opening balance"""
    existing = await db.execute(select(PaymentAccount).where(PaymentAccount.name == account_in.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Account with this name already exists")

    account = PaymentAccount(
        name=account_in.name,
        account_type=account_in.account_type,
        balance=to_money(account_in.balance),
        account_number=account_in.account_number,
        bank_name=account_in.bank_name,
        description=account_in.description,
        created_by=current_staff.id
    )
    db.add(account)
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="ACCOUNT_CREATED",
        entity_type="payment_account",
        entity_id=account.id,
        message=account.name,
        details={"type": account.account_type, "balance": str(account.balance)}
    )
    await db.commit()
    await db.refresh(account)

    return PaymentAccountResponse.model_validate(account)


@router.put("/payment-accounts/{account_id}", response_model=PaymentAccountResponse)
async def update_payment_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.edit")),
    account_id: int,
    account_in: PaymentAccountUpdate) -> Any:
    """Update account details; the balance only moves through transfers"""
    account = await get_open_account(db, account_id)
    update_data = account_in.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != account.name:
        existing = await db.execute(select(PaymentAccount).where(PaymentAccount.name == update_data["name"]))
        if existing.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Account with this name already exists")
    for field, value in update_data.items():
        if value is None and field in ("name", "account_type", "status"):
            continue
        setattr(account, field, value)

    await db.commit()
    await db.refresh(account)

    return PaymentAccountResponse.model_validate(account)


@router.delete("/payment-accounts/{account_id}")
async def close_payment_account(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.delete")),
    account_id: int) -> Any:
    """Close an account; its history stays"""
    account = await get_open_account(db, account_id)
    account.status = "closed"

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="ACCOUNT_CLOSED",
        entity_type="payment_account",
        entity_id=account.id,
        message=account.name,
        details={"balance": str(account.balance)}
    )
    await db.commit()

    return {"message": "Account closed"}


@router.post("/transfer", response_model=FundsTransferResult)
async def transfer_funds(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.transfer")),
    transfer_in: FundsTransfer) -> Any:
    """
    Move money between two accounts

    Books a paid 'Transfer' expense on the source and a received 'Transfer'
    income on the destination.
    """
    if transfer_in.from_account_id == transfer_in.to_account_id:
        raise HTTPException(status_code=400, detail="Cannot transfer to the same account")
    source = await get_open_account(db, transfer_in.from_account_id)
    target = await get_open_account(db, transfer_in.to_account_id)

    amount = to_money(transfer_in.amount)
    if to_decimal(source.balance) < amount:
        raise HTTPException(status_code=400, detail="Insufficient funds")

    source.balance = to_money(to_decimal(source.balance) - amount)
    target.balance = to_money(to_decimal(target.balance) + amount)

    now = datetime.utcnow()
    expense = Expense(
        title=f"Transfer to {target.name}",
        category=TRANSFER_CATEGORY,
        amount=amount,
        date=now,
        status="paid",
        account_id=source.id,
        payment_method="bank_transfer",
        notes=transfer_in.description,
        created_by=current_staff.id
    )
    income = Income(
        title=f"Transfer from {source.name}",
        category=TRANSFER_CATEGORY,
        amount=amount,
        date=now,
        status="received",
        account_id=target.id,
        notes=transfer_in.description,
        created_by=current_staff.id
    )
    db.add_all([expense, income])
    await db.flush()

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="FUNDS_TRANSFERRED",
        entity_type="payment_account",
        entity_id=source.id,
        message=f"{source.name} -> {target.name}",
        details={"amount": str(amount), "to_account_id": target.id}
    )
    await db.commit()
    await db.refresh(source)
    await db.refresh(target)

    return FundsTransferResult(
        from_account=PaymentAccountResponse.model_validate(source),
        to_account=PaymentAccountResponse.model_validate(target),
        expense_id=expense.id,
        income_id=income.id
    )


@router.get("/payment-accounts/{account_id}/transactions", response_model=AccountTransactionList)
async def get_account_transactions(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.view")),
    account_id: int) -> Any:
    """Expenses and incomes booked on one account, latest first"""
    account = await db.get(PaymentAccount, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")

    expenses = (await db.execute(select(Expense).where(Expense.account_id == account_id))).scalars().all()
    incomes = (await db.execute(select(Income).where(Income.account_id == account_id))).scalars().all()

    rows = [
        AccountTransaction(id=e.id, type="expense", title=e.title, category=e.category,
                           amount=e.amount, date=e.date, status=e.status)
        for e in expenses
    ] + [
        AccountTransaction(id=i.id, type="income", title=i.title, category=i.category,
                           amount=i.amount, date=i.date, status=i.status)
        for i in incomes
    ]
    rows.sort(key=lambda row: (row.date, row.type == "income", row.id), reverse=True)

    return AccountTransactionList(
        account=PaymentAccountResponse.model_validate(account),
        data=rows,
        total=len(rows)
    )


@router.get("/balance-sheet", response_model=BalanceSheet)
async def get_balance_sheet(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("account.view"))) -> Any:
    """
    Balance sheet from the open accounts

    Credit accounts count as liabilities. Retained earnings are received
    income less paid expenses, leaving out transfers between accounts.
    """
    result = await db.execute(
        select(PaymentAccount.account_type, func.coalesce(func.sum(PaymentAccount.balance), 0))
        .where(PaymentAccount.status != "closed")
        .group_by(PaymentAccount.account_type)
    )
    by_type = {account_type: to_money(total) for account_type, total in result.all()}
    zero = Decimal("0.00")

    received = (await db.execute(
        select(func.coalesce(func.sum(Income.amount), 0))
        .where(Income.status == "received", Income.category != TRANSFER_CATEGORY)
    )).scalar()
    paid = (await db.execute(
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.status == "paid", Expense.category != TRANSFER_CATEGORY)
    )).scalar()
    retained = to_money(to_decimal(received) - to_decimal(paid))

    cash = by_type.get("cash", zero)
    bank = by_type.get("bank", zero)
    other_assets = by_type.get("asset", zero)
    equity = by_type.get("equity", zero)

    return BalanceSheet(
        cash=cash,
        bank=bank,
        other_assets=other_assets,
        total_assets=to_money(cash + bank + other_assets),
        liabilities=to_money(by_type.get("liability", zero) + by_type.get("credit", zero)),
        equity=equity,
        retained_earnings=retained,
        total_equity=to_money(equity + retained),
        as_of=datetime.utcnow()
    )
