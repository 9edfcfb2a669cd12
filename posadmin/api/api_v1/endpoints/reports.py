"""Reports API"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.sales import hourly_breakdown
from posadmin.api.api_v1.endpoints.staff import compute_staff_stats
from posadmin.core.config import settings
from posadmin.core.dates import day_range, start_of_day, start_of_month
from posadmin.core.deps import get_db, require_permission
from posadmin.models import (
    Sale,
    SaleItem,
    SaleItemBatch,
    Product,
    ProductBatch,
    Customer,
    Expense,
    Income,
    Staff)
from posadmin.models.finance import TRANSFER_CATEGORY
from posadmin.schemas.report import (
    TopProduct,
    RecentOrder,
    DashboardData,
    RevenuePoint,
    PaymentMethodTotal,
    SalesReport,
    ProfitLossSummary,
    StockValue,
    ProfitLossBreakdown,
    ProfitLossTransactions,
    ProfitLossReport,
    LowStockItem,
    ExpenseCategoryTotal,
    ExpenseMonthTotal,
    ExpensePaymentMethodTotal,
    ExpensesReport)
from posadmin.schemas.staff import StaffStats
from posadmin.services.inventory import stock_values
from posadmin.services.pricing import to_decimal, to_money

router = APIRouter()

HUNDRED = Decimal("100")


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal("0.00")
    return to_money(part / whole * HUNDRED)


async def revenue_between(db: AsyncSession, start: datetime, end: Optional[datetime] = None):
    """(revenue, transactions) of non-voided sales in [start, end)"""
    query = select(
        func.coalesce(func.sum(Sale.total_revenue), 0),
        func.count(Sale.id)
    ).where(Sale.is_voided == False, Sale.created_at >= start)
    if end:
        query = query.where(Sale.created_at < end)
    revenue, count = (await db.execute(query)).one()
    return to_money(revenue), int(count or 0)


async def top_products(db: AsyncSession, start: Optional[datetime], end: Optional[datetime], limit: int = 5) -> List[TopProduct]:
    revenue = func.sum(SaleItem.total)
    query = (
        select(SaleItem.product_id, Product.name, func.sum(SaleItem.quantity), revenue)
        .select_from(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Product, Product.id == SaleItem.product_id)
        .where(Sale.is_voided == False)
        .group_by(SaleItem.product_id, Product.name)
        .order_by(revenue.desc())
        .limit(limit)
    )
    if start:
        query = query.where(Sale.created_at >= start)
    if end:
        query = query.where(Sale.created_at < end)
    result = await db.execute(query)
    return [
        TopProduct(product_id=pid, name=name, quantity=int(qty or 0), revenue=to_money(amount))
        for pid, name, qty, amount in result.all()
    ]


async def low_stock_rows(db: AsyncSession, threshold: int):
    """Products whose non-depleted batches hold at most `threshold` units"""
    stock = func.sum(ProductBatch.remaining)
    result = await db.execute(
        select(Product.id, Product.name, Product.sku, stock)
        .select_from(ProductBatch)
        .join(Product, Product.id == ProductBatch.product_id)
        .where(ProductBatch.is_depleted == False, Product.is_deleted == False)
        .group_by(Product.id, Product.name, Product.sku)
        .having(stock <= threshold)
        .order_by(stock.asc(), Product.name)
    )
    return result.all()


@router.get("/dashboard", response_model=DashboardData)
async def get_dashboard(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("dashboard.view"))) -> Any:
    """Dashboard numbers"""
    today = start_of_day()
    yesterday = today - timedelta(days=1)
    month_start = start_of_month()

    today_revenue, today_count = await revenue_between(db, today)
    yesterday_revenue, yesterday_count = await revenue_between(db, yesterday, today)
    month_revenue, _ = await revenue_between(db, month_start)

    if yesterday_revenue:
        revenue_change = to_money((today_revenue - yesterday_revenue) / yesterday_revenue * HUNDRED)
    else:
        revenue_change = Decimal("100.00") if today_revenue else Decimal("0.00")

    total_products = (await db.execute(
        select(func.count(Product.id)).where(Product.is_deleted == False, Product.is_active == True)
    )).scalar() or 0
    low_stock = await low_stock_rows(db, settings.LOW_STOCK_THRESHOLD)

    total_customers = (await db.execute(
        select(func.count(Customer.id)).where(Customer.is_deleted == False, Customer.is_active == True)
    )).scalar() or 0
    new_customers = (await db.execute(
        select(func.count(Customer.id)).where(Customer.is_deleted == False, Customer.created_at >= today)
    )).scalar() or 0

    recent = await db.execute(
        select(Sale)
        .where(Sale.is_voided == False)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(5)
    )

    return DashboardData(
        today_revenue=today_revenue,
        yesterday_revenue=yesterday_revenue,
        month_revenue=month_revenue,
        revenue_change=revenue_change,
        today_transactions=today_count,
        yesterday_transactions=yesterday_count,
        total_products=total_products,
        low_stock_count=len(low_stock),
        total_customers=total_customers,
        new_customers_today=new_customers,
        top_products=await top_products(db, month_start, None),
        recent_orders=[
            RecentOrder(
                id=s.id,
                sale_number=s.sale_number,
                date=s.created_at,
                items=len(s.items),
                total=s.total_revenue,
                payment_method=s.payment_method)
            for s in recent.unique().scalars().all()
        ]
    )


@router.get("/revenue-chart")
async def get_revenue_chart(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("dashboard.view")),
    days: int = Query(7, ge=1, le=90)) -> List[RevenuePoint]:
    """Daily revenue for the last `days` days, oldest first"""
    today = start_of_day()
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        revenue, count = await revenue_between(db, day, day + timedelta(days=1))
        points.append(RevenuePoint(date=day.strftime("%Y-%m-%d"), revenue=revenue, transactions=count))
    return points


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.sales")),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    warehouse_id: Optional[int] = Query(None)) -> Any:
    """Sales totals for a period"""
    start, end = day_range(start_date, end_date)
    query = select(Sale).where(Sale.is_voided == False)
    if start:
        query = query.where(Sale.created_at >= start)
    if end:
        query = query.where(Sale.created_at < end)
    if warehouse_id:
        query = query.where(Sale.warehouse_id == warehouse_id)
    sales = (await db.execute(query)).unique().scalars().all()

    total_sales = to_money(sum((to_decimal(s.total) for s in sales), Decimal("0")))
    total_profit = to_money(sum((to_decimal(s.profit) for s in sales), Decimal("0")))
    transactions = len(sales)

    methods = {}
    for sale in sales:
        entry = methods.setdefault(sale.payment_method, [Decimal("0"), 0])
        entry[0] += to_decimal(sale.total)
        entry[1] += 1

    return SalesReport(
        start_date=start,
        end_date=end,
        total_sales=total_sales,
        total_profit=total_profit,
        transactions=transactions,
        average_order_value=to_money(total_sales / transactions) if transactions else Decimal("0.00"),
        top_products=await top_products(db, start, end),
        payment_methods=[
            PaymentMethodTotal(payment_method=method, amount=to_money(amount), transactions=count)
            for method, (amount, count) in sorted(methods.items())
        ],
        hourly=hourly_breakdown(sales)
    )


@router.get("/profit-loss", response_model=ProfitLossReport)
async def get_profit_loss(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.profit_loss")),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, default 1 January"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, default today")) -> Any:
    """
    Profit and loss statement

    Cost of goods comes from the batch allocations recorded at sale time.
    Other income excludes the 'Sales' category, which the sales already cover.
    Transfers between payment accounts are neither income nor expense.
    """
    start, end = day_range(start_date, end_date)
    now = datetime.utcnow()
    start = start or start_of_day(now).replace(month=1, day=1)
    end = end or now

    sales_row = (await db.execute(
        select(func.coalesce(func.sum(Sale.total_revenue), 0), func.count(Sale.id))
        .where(Sale.is_voided == False, Sale.created_at >= start, Sale.created_at < end)
    )).one()
    total_sales = to_money(sales_row[0])
    sales_count = int(sales_row[1] or 0)

    total_cogs = to_money((await db.execute(
        select(func.coalesce(func.sum(SaleItemBatch.cost_amount), 0))
        .select_from(SaleItemBatch)
        .join(SaleItem, SaleItem.id == SaleItemBatch.sale_item_id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.is_voided == False, Sale.created_at >= start, Sale.created_at < end)
    )).scalar())

    expenses = (await db.execute(
        select(Expense).where(
            Expense.status == "paid",
            Expense.category != TRANSFER_CATEGORY,
            Expense.date >= start,
            Expense.date < end
        )
    )).scalars().all()
    incomes = (await db.execute(
        select(Income).where(
            Income.status == "received",
            Income.category.notin_(("Sales", TRANSFER_CATEGORY)),
            Income.date >= start,
            Income.date < end
        )
    )).scalars().all()

    expenses_by_category = {}
    for expense in expenses:
        expenses_by_category[expense.category] = to_money(
            expenses_by_category.get(expense.category, Decimal("0")) + to_decimal(expense.amount)
        )
    income_by_category = {}
    for income in incomes:
        income_by_category[income.category] = to_money(
            income_by_category.get(income.category, Decimal("0")) + to_decimal(income.amount)
        )

    total_expenses = to_money(sum(expenses_by_category.values(), Decimal("0")))
    total_other_income = to_money(sum(income_by_category.values(), Decimal("0")))
    gross_profit = to_money(total_sales - total_cogs)
    net_profit = to_money(gross_profit - total_expenses + total_other_income)

    stock_batches = (await db.execute(
        select(ProductBatch).where(ProductBatch.is_depleted == False, ProductBatch.created_at < end)
    )).unique().scalars().all()
    value_cost, value_price = stock_values(stock_batches)

    return ProfitLossReport(
        summary=ProfitLossSummary(
            total_sales=total_sales,
            total_cogs=total_cogs,
            gross_profit=gross_profit,
            gross_profit_margin=percent_of(gross_profit, total_sales),
            total_expenses=total_expenses,
            total_other_income=total_other_income,
            net_profit=net_profit,
            net_profit_margin=percent_of(net_profit, total_sales),
            start_date=start,
            end_date=end
        ),
        stock=StockValue(
            by_purchase_price=value_cost,
            by_sale_price=value_price,
            batches=len(stock_batches)
        ),
        breakdown=ProfitLossBreakdown(expenses=expenses_by_category, other_income=income_by_category),
        transactions=ProfitLossTransactions(
            sales_count=sales_count,
            expenses_count=len(expenses),
            incomes_count=len(incomes)
        )
    )


@router.get("/low-stock")
async def get_low_stock(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.stock")),
    threshold: Optional[int] = Query(None, ge=0, description="Defaults to LOW_STOCK_THRESHOLD")) -> List[LowStockItem]:
    """Products running out, lowest stock first"""
    rows = await low_stock_rows(db, settings.LOW_STOCK_THRESHOLD if threshold is None else threshold)
    return [
        LowStockItem(product_id=pid, name=name, sku=sku, stock=int(stock or 0))
        for pid, name, sku, stock in rows
    ]


@router.get("/staff-stats", response_model=StaffStats)
async def get_staff_stats(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.view"))) -> Any:
    """Staff counters"""
    return await compute_staff_stats(db, current_staff.organization_id)


@router.get("/expenses", response_model=ExpensesReport)
async def get_expenses_report(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("report.expenses")),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, default 1 January"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, default today")) -> Any:
    """Expenses by category, month and payment method; transfers between accounts are left out"""
    start, end = day_range(start_date, end_date)
    now = datetime.utcnow()
    start = start or start_of_day(now).replace(month=1, day=1)
    end = end or now

    expenses = (await db.execute(
        select(Expense)
        .where(Expense.category != TRANSFER_CATEGORY, Expense.date >= start, Expense.date < end)
        .order_by(Expense.date)
    )).scalars().all()
    total = to_money(sum((to_decimal(e.amount) for e in expenses), Decimal("0")))

    categories, months, methods = {}, {}, {}
    for expense in expenses:
        amount = to_decimal(expense.amount)
        for buckets, key in (
            (categories, expense.category),
            (months, expense.date.strftime("%Y-%m")),
            (methods, expense.payment_method or "unspecified"),
        ):
            entry = buckets.setdefault(key, [Decimal("0"), 0])
            entry[0] += amount
            entry[1] += 1

    category_rows = sorted(
        (
            ExpenseCategoryTotal(
                category=name,
                amount=to_money(amount),
                count=count,
                percentage=percent_of(amount, total))
            for name, (amount, count) in categories.items()
        ),
        key=lambda row: (-row.amount, row.category)
    )

    return ExpensesReport(
        start_date=start,
        end_date=end,
        total_expenses=total,
        transactions=len(expenses),
        average_expense=to_money(total / len(expenses)) if expenses else Decimal("0.00"),
        top_category=category_rows[0].category if category_rows else None,
        categories=category_rows,
        monthly=[
            ExpenseMonthTotal(month=month, amount=to_money(amount), count=count)
            for month, (amount, count) in sorted(months.items())
        ],
        payment_methods=sorted(
            (
                ExpensePaymentMethodTotal(method=method, amount=to_money(amount), count=count)
                for method, (amount, count) in methods.items()
            ),
            key=lambda row: (-row.amount, row.method)
        )
    )
