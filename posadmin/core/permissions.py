"""
Permission catalogue
Every role carries a map of permission code -> bool; codes are "<module>.<action>"
"""
from typing import Dict, List, Optional

# module key -> (label, actions)
PERMISSION_CATALOGUE = {
    "dashboard": ("Dashboard", ["view"]),
    "staff": ("Staff", ["view", "add", "edit", "delete"]),
    "role": ("Roles & Permissions", ["view", "add", "edit", "delete"]),
    "department": ("Departments", ["view", "add", "edit", "delete"]),
    "product": ("Products", ["view", "add", "edit", "delete"]),
    "unit": ("Units", ["view", "add", "edit", "delete"]),
    "brand": ("Brands", ["view", "add", "edit", "delete"]),
    "category": ("Categories", ["view", "add", "edit", "delete"]),
    "warehouse": ("Warehouses", ["view", "add", "edit", "delete"]),
    "batch": ("Product Batches", ["view", "add", "edit"]),
    "purchase": ("Purchases", ["view", "add", "edit", "manage"]),
    "supplier": ("Suppliers", ["view", "add", "edit", "delete"]),
    "sales": ("Sales / POS", ["view", "add", "manage"]),
    "customer": ("Customers", ["view", "add", "edit", "delete"]),
    "transfer": ("Stock Transfers", ["view", "add", "manage"]),
    "shipment": ("Shipments", ["view", "add", "edit", "manage"]),
    "transport": ("Transports", ["view", "add", "edit", "delete"]),
    "hr": ("HR Requests", ["view", "add", "manage"]),
    "expense": ("Expenses", ["view", "add", "edit", "delete"]),
    "income": ("Income", ["view", "add", "edit", "delete"]),
    "account": ("Payment Accounts", ["view", "add", "edit", "delete", "transfer"]),
    "payroll": ("Payroll", ["view", "add", "edit", "manage"]),
    "report": ("Reports", ["view", "sales", "profit_loss", "stock", "expenses"]),
    "audit": ("History", ["view"]),
    "system": ("System", ["manage"]),
}

ACTION_LABELS = {
    "view": "View",
    "add": "Add",
    "edit": "Edit",
    "delete": "Delete",
    "manage": "Manage",
    "sales": "Sales report",
    "profit_loss": "Profit & loss report",
    "stock": "Stock report",
    "expenses": "Expenses report",
    "transfer": "Transfer funds",
}


def all_permission_codes() -> List[str]:
    """All known permission codes, catalogue order"""
    return [
        f"{module}.{action}"
        for module, (_, actions) in PERMISSION_CATALOGUE.items()
        for action in actions
    ]


def permission_modules() -> List[dict]:
    """Catalogue grouped by module, for the role editor"""
    return [
        {
            "module": module,
            "label": label,
            "permissions": [
                {"code": f"{module}.{action}", "action": action, "label": ACTION_LABELS.get(action, action)}
                for action in actions
            ],
        }
        for module, (label, actions) in PERMISSION_CATALOGUE.items()
    ]


def unknown_permission_codes(permissions: Optional[Dict[str, bool]]) -> List[str]:
    known = set(all_permission_codes())
    return sorted(code for code in (permissions or {}) if code not in known)


def normalize_permissions(
    permissions: Optional[Dict[str, bool]],
    base: Optional[Dict[str, bool]] = None
) -> Dict[str, bool]:
    """
    Full permission map with every catalogue code present

    Codes missing from `permissions` keep their value from `base` (False when
    there is no base). Unknown codes raise ValueError.
    """
    unknown = unknown_permission_codes(permissions)
    if unknown:
        raise ValueError(f"Unknown permission codes: {', '.join(unknown)}")

    base = base or {}
    permissions = permissions or {}
    return {
        code: bool(permissions.get(code, base.get(code, False)))
        for code in all_permission_codes()
    }


def full_permissions() -> Dict[str, bool]:
    return {code: True for code in all_permission_codes()}
