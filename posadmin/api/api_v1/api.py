"""V1 API router aggregation"""
from fastapi import APIRouter

from posadmin.api.api_v1.endpoints import (
    auth, roles, departments, staff, hr,
    warehouses, suppliers, customers,
    categories, brands, units, products, batches,
    purchases, sales, stock_transfers, shipments, transports,
    accounts, payroll, analytics, reports, history, system
)

api_router = APIRouter()

# Access & people
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(roles.router, prefix="/roles", tags=["Roles"])
api_router.include_router(departments.router, prefix="/departments", tags=["Departments"])
api_router.include_router(staff.router, prefix="/staff", tags=["Staff"])
api_router.include_router(hr.router, prefix="/hr", tags=["HR requests"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["Payroll"])

# Master data
api_router.include_router(warehouses.router, prefix="/warehouses", tags=["Warehouses"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["Suppliers"])
api_router.include_router(customers.router, prefix="/customers", tags=["Customers"])
api_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_router.include_router(brands.router, prefix="/brands", tags=["Brands"])
api_router.include_router(units.router, prefix="/units", tags=["Units"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])

# Stock & trade
api_router.include_router(batches.router, prefix="/batches", tags=["Product batches"])
api_router.include_router(purchases.router, prefix="/purchases", tags=["Purchases"])
api_router.include_router(sales.router, prefix="/sales", tags=["POS sales"])
api_router.include_router(stock_transfers.router, prefix="/stock-transfers", tags=["Stock transfers"])
api_router.include_router(shipments.router, prefix="/shipments", tags=["Shipments"])
api_router.include_router(transports.router, prefix="/transports", tags=["Transports"])

# Finance, reports & system
api_router.include_router(accounts.router, prefix="/accounts", tags=["Accounts, expenses & income"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Warehouse analytics"])
api_router.include_router(history.router, prefix="/history", tags=["History"])
api_router.include_router(system.router, prefix="/system", tags=["System"])
