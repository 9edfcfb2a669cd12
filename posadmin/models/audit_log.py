"""
History (audit log) model - records every significant write
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from posadmin.db.base import Base


class AuditLog(Base):
    """History entry

    action_type is an upper-case verb phrase such as ROLE_CREATED,
    STAFF_DELETED, BATCH_ADJUSTED or TRANSFER_COMPLETED.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action_type = Column(String(50), nullable=False, index=True, comment="Action")
    entity_type = Column(String(50), nullable=False, index=True, comment="Entity, e.g. role / staff / batch")
    entity_id = Column(Integer, index=True, comment="Entity id")
    message = Column(String(500), comment="Human readable message")
    details = Column(JSON, comment="Extra details")

    performed_by = Column(Integer, ForeignKey("staff.id"), index=True, comment="Staff id")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    performer = relationship("Staff", lazy="joined")

    def __repr__(self):
        return f"<AuditLog {self.action_type} {self.entity_type}:{self.entity_id}>"

    @property
    def performer_name(self) -> str:
        return self.performer.full_name if self.performer else ""
