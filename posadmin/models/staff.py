"""
Staff model
Staff members sign in, carry one role and may be assigned to warehouses
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Date, ForeignKey, Table
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from posadmin.db.base import Base


# staff <-> warehouse assignment
staff_warehouses = Table(
    "staff_warehouses",
    Base.metadata,
    Column("staff_id", Integer, ForeignKey("staff.id"), primary_key=True),
    Column("warehouse_id", Integer, ForeignKey("warehouses.id"), primary_key=True),
    Column("created_at", DateTime, default=datetime.utcnow)
)

WORK_LOCATIONS = ("on-site", "remote", "hybrid")


class Staff(Base):
    """Staff member / user account"""
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), index=True)
    salary_structure_id = Column(Integer, ForeignKey("salary_structures.id"), index=True, comment="Pay template")

    # Account
    username = Column(String(50), nullable=False, unique=True, index=True, comment="Login name (email local part)")
    email = Column(String(100), nullable=False, unique=True, index=True, comment="Email")
    password_hash = Column(String(255), nullable=False, comment="bcrypt hash")
    full_name = Column(String(100), nullable=False, comment="Full name")

    # Personal details
    phone_number = Column(String(30), comment="Phone")
    emergency_number = Column(String(30), comment="Emergency contact number")
    date_of_birth = Column(Date, comment="Date of birth")
    gender = Column(String(20), comment="Gender")
    job_title = Column(String(100), comment="Job title")
    work_location = Column(String(20), default="on-site", comment="on-site / remote / hybrid")
    start_date = Column(Date, comment="Employment start date")
    bio = Column(Text, comment="Bio")

    # {"street": ..., "city": ..., "state": ..., "postal_code": ..., "country": ...}
    address = Column(JSON, comment="Address")
    # {"card_type": ..., "card_number": ..., "expiry": ...}
    card_details = Column(JSON, comment="Salary card details")
    # {"bank_name": ..., "account_number": ..., "account_name": ...}
    account_details = Column(JSON, comment="Bank account details")

    # Status flags
    is_active = Column(Boolean, default=True, comment="Active")
    on_leave = Column(Boolean, default=False, comment="Currently on leave")
    is_banned = Column(Boolean, default=False, comment="Banned from signing in")
    require_password_change = Column(Boolean, default=False, comment="Must change password on next login")
    is_deleted = Column(Boolean, default=False, comment="Soft delete flag")
    last_login = Column(DateTime, comment="Last successful login")

    created_by = Column(Integer, ForeignKey("staff.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    role = relationship("Role", lazy="joined")
    department = relationship("Department", lazy="joined")
    warehouses = relationship("Warehouse", secondary=staff_warehouses, lazy="selectin")
    salary_structure = relationship("SalaryStructure", foreign_keys=[salary_structure_id], lazy="joined")

    def __repr__(self):
        return f"<Staff {self.username}>"

    @property
    def can_sign_in(self) -> bool:
        return bool(self.is_active and not self.is_deleted and not self.is_banned)

    @property
    def department_name(self) -> str:
        return self.department.name if self.department else ""

    @property
    def role_name(self) -> str:
        return self.role.display_name if self.role else ""

    def has_permission(self, permission: str) -> bool:
        return bool(self.role and self.role.has_permission(permission))

    def permission_map(self) -> dict:
        """Effective permission flags for the client"""
        from posadmin.core.permissions import all_permission_codes
        return {code: self.has_permission(code) for code in all_permission_codes()}
