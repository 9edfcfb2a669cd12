"""Report schemas"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel

from posadmin.schemas.sale import HourlySales


class TopProduct(BaseModel):
    product_id: int
    name: str
    quantity: int
    revenue: Decimal


class RecentOrder(BaseModel):
    id: int
    sale_number: str
    date: datetime
    items: int
    total: Decimal
    payment_method: str


class DashboardData(BaseModel):
    today_revenue: Decimal
    yesterday_revenue: Decimal
    month_revenue: Decimal
    revenue_change: Decimal
    today_transactions: int
    yesterday_transactions: int
    total_products: int
    low_stock_count: int
    total_customers: int
    new_customers_today: int
    top_products: List[TopProduct]
    recent_orders: List[RecentOrder]


class RevenuePoint(BaseModel):
    date: str
    revenue: Decimal
    transactions: int


class PaymentMethodTotal(BaseModel):
    payment_method: str
    amount: Decimal
    transactions: int


class SalesReport(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_sales: Decimal
    total_profit: Decimal
    transactions: int
    average_order_value: Decimal
    top_products: List[TopProduct]
    payment_methods: List[PaymentMethodTotal]
    hourly: List[HourlySales]


class ProfitLossSummary(BaseModel):
    total_sales: Decimal
    total_cogs: Decimal
    gross_profit: Decimal
    gross_profit_margin: Decimal
    total_expenses: Decimal
    total_other_income: Decimal
    net_profit: Decimal
    net_profit_margin: Decimal
    start_date: datetime
    end_date: datetime


class StockValue(BaseModel):
    by_purchase_price: Decimal  # landed cost
    by_sale_price: Decimal
    batches: int


class ProfitLossBreakdown(BaseModel):
    expenses: Dict[str, Decimal]
    other_income: Dict[str, Decimal]


class ProfitLossTransactions(BaseModel):
    sales_count: int
    expenses_count: int
    incomes_count: int


class ProfitLossReport(BaseModel):
    summary: ProfitLossSummary
    stock: StockValue
    breakdown: ProfitLossBreakdown
    transactions: ProfitLossTransactions


class LowStockItem(BaseModel):
    product_id: int
    name: str
    sku: Optional[str] = None
    stock: int


class ExpenseCategoryTotal(BaseModel):
    category: str
    amount: Decimal
    count: int
    percentage: Decimal


class ExpenseMonthTotal(BaseModel):
    month: str
    amount: Decimal
    count: int


class ExpensePaymentMethodTotal(BaseModel):
    method: str
    amount: Decimal
    count: int


class ExpensesReport(BaseModel):
    start_date: datetime
    end_date: datetime
    total_expenses: Decimal
    transactions: int
    average_expense: Decimal
    top_category: Optional[str] = None
    categories: List[ExpenseCategoryTotal]
    monthly: List[ExpenseMonthTotal]
    payment_methods: List[ExpensePaymentMethodTotal]
