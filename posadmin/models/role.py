"""
Role model
Core of the role/permission matrix
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.sqlite import JSON
from posadmin.db.base import Base

ADMIN_ROLE_NAME = "admin"


class Role(Base):
    """Role - a named set of permission flags"""
    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_role_org_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    name = Column(String(50), nullable=False, comment="Role name")
    display_name = Column(String(100), nullable=False, comment="Display name")
    description = Column(String(200), comment="Description")

    # {"product.view": true, "product.add": false, ...}
    permissions = Column(JSON, nullable=False, default=dict, comment="Permission map")

    # System roles cannot be renamed or deleted
    is_system = Column(Boolean, default=False, comment="System role")
    is_active = Column(Boolean, default=True, comment="Active")

    created_by = Column(Integer, comment="Created by staff id")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Role {self.name}: {self.display_name}>"

    @property
    def is_admin(self) -> bool:
        return bool(self.is_system and self.name == ADMIN_ROLE_NAME)

    def has_permission(self, permission: str) -> bool:
        """Whether this role grants a permission code"""
        if not self.is_active:
            return False
        if self.is_admin:
            return True
        return bool((self.permissions or {}).get(permission, False))

    @property
    def granted_permissions(self) -> list:
        return sorted(code for code, granted in (self.permissions or {}).items() if granted)
