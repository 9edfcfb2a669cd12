"""
Payroll - salary structures and monthly salary payments
A structure is a reusable pay template; staff point at one.
Payments: pending -> paid / cancelled
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, UniqueConstraint
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from posadmin.db.base import Base
from posadmin.services.pricing import to_decimal, to_money, HUNDRED

PAYMENT_STATUSES = ("pending", "paid", "cancelled")
PAYMENT_METHODS = ("bank_transfer", "cash", "cheque")


def component_amount(component: dict, basic: Decimal) -> Decimal:
    """Amount of one allowance/deduction; percentage components are a share of basic salary"""
    amount = to_decimal(component.get("amount"))
    if component.get("type") == "percentage":
        return to_money(basic * amount / HUNDRED)
    return to_money(amount)


def components_total(components, basic: Decimal) -> Decimal:
    return to_money(sum((component_amount(c, basic) for c in components or []), Decimal("0")))


class SalaryStructure(Base):
    __tablename__ = "salary_structures"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, comment="Structure title, e.g. Cashier")
    department_id = Column(Integer, ForeignKey("departments.id"), index=True)
    position = Column(String(100), comment="Position")
    basic_salary = Column(DECIMAL(12, 2), nullable=False, comment="Monthly basic salary")
    # [{"name": "Housing", "amount": "100", "type": "fixed" | "percentage"}]
    allowances = Column(JSON, default=list, comment="Allowances")
    deductions = Column(JSON, default=list, comment="Deductions")
    status = Column(String(20), default="active", index=True, comment="active/inactive")
    description = Column(Text, comment="Description")

    # no staff FK here, staff.salary_structure_id points this way
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", lazy="joined")

    def __repr__(self):
        return f"<SalaryStructure {self.title}>"

    @property
    def total_allowances(self) -> Decimal:
        return components_total(self.allowances, to_decimal(self.basic_salary))

    @property
    def total_deductions(self) -> Decimal:
        return components_total(self.deductions, to_decimal(self.basic_salary))

    @property
    def total_salary(self) -> Decimal:
        """basic + allowances - deductions"""
        return to_money(to_decimal(self.basic_salary) + self.total_allowances - self.total_deductions)


class SalaryPayment(Base):
    """One month's pay for one staff member"""
    __tablename__ = "salary_payments"
    __table_args__ = (
        UniqueConstraint("staff_id", "pay_year", "pay_month", name="uq_salary_payment_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    structure_id = Column(Integer, ForeignKey("salary_structures.id"), index=True)
    pay_month = Column(Integer, nullable=False, comment="1-12")
    pay_year = Column(Integer, nullable=False, comment="Year")

    basic_salary = Column(DECIMAL(12, 2), nullable=False, comment="Basic salary")
    total_allowances = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Allowances")
    total_deductions = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Deductions")
    gross_salary = Column(DECIMAL(12, 2), nullable=False, comment="basic + allowances")
    net_salary = Column(DECIMAL(12, 2), nullable=False, comment="gross - deductions")

    status = Column(String(20), default="pending", index=True, comment="pending/paid/cancelled")
    payment_method = Column(String(20), default="bank_transfer", comment="bank_transfer/cash/cheque")
    payment_date = Column(DateTime, comment="Paid at")
    account_id = Column(Integer, ForeignKey("payment_accounts.id"), comment="Paid from")
    notes = Column(Text, comment="Notes")

    processed_by = Column(Integer, ForeignKey("staff.id"))
    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    staff = relationship("Staff", foreign_keys=[staff_id], lazy="joined")
    structure = relationship("SalaryStructure", lazy="joined")

    @property
    def period(self) -> str:
        return f"{self.pay_year:04d}-{self.pay_month:02d}"

    def apply_structure(self, structure: SalaryStructure):
        basic = to_money(structure.basic_salary)
        self.structure = structure
        self.basic_salary = basic
        self.total_allowances = structure.total_allowances
        self.total_deductions = structure.total_deductions
        self.gross_salary = to_money(basic + structure.total_allowances)
        self.net_salary = to_money(self.gross_salary - structure.total_deductions)
