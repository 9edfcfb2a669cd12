# Models - importing this package registers every table on Base.metadata

from posadmin.models.organization import Organization
from posadmin.models.department import Department
from posadmin.models.role import Role
from posadmin.models.staff import Staff, staff_warehouses
from posadmin.models.auth_session import AuthSession
from posadmin.models.warehouse import Warehouse
from posadmin.models.supplier import Supplier
from posadmin.models.customer import Customer
from posadmin.models.category import Category, Brand
from posadmin.models.unit import Unit
from posadmin.models.product import Product
from posadmin.models.product_batch import ProductBatch, SaleItemBatch
from posadmin.models.purchase import Purchase, PurchaseItem
from posadmin.models.sale import Sale, SaleItem
from posadmin.models.stock_transfer import StockTransfer, StockTransferItem
from posadmin.models.shipment import Shipment, ShipmentItem
from posadmin.models.transport import Transport
from posadmin.models.hr_request import LeaveRequest, SalaryRequest
from posadmin.models.finance import PaymentAccount, Expense, Income
from posadmin.models.payroll import SalaryStructure, SalaryPayment
from posadmin.models.audit_log import AuditLog

__all__ = [
    "Organization",
    "Department",
    "Role",
    "Staff",
    "staff_warehouses",
    "AuthSession",
    "Warehouse",
    "Supplier",
    "Customer",
    "Category",
    "Brand",
    "Unit",
    "Product",
    "ProductBatch",
    "SaleItemBatch",
    "Purchase",
    "PurchaseItem",
    "Sale",
    "SaleItem",
    "StockTransfer",
    "StockTransferItem",
    "Shipment",
    "ShipmentItem",
    "Transport",
    "LeaveRequest",
    "SalaryRequest",
    "PaymentAccount",
    "Expense",
    "Income",
    "SalaryStructure",
    "SalaryPayment",
    "AuditLog",
]
