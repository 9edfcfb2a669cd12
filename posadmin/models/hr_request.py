"""
HR requests - leave and salary (advance / raise) requests
pending -> approved / rejected
"""
from datetime import datetime, date
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from posadmin.db.base import Base

REQUEST_STATUSES = ("pending", "approved", "rejected")
LEAVE_TYPES = ("annual", "sick", "maternity", "paternity", "emergency", "study")


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    leave_type = Column(String(20), nullable=False, comment="annual/sick/maternity/paternity/emergency/study")
    start_date = Column(Date, nullable=False, comment="First day")
    end_date = Column(Date, nullable=False, comment="Last day")
    days = Column(Integer, nullable=False, comment="Calendar days, inclusive")
    reason = Column(Text, nullable=False, comment="Reason")
    status = Column(String(20), default="pending", index=True, comment="pending/approved/rejected")
    approved_by = Column(Integer, ForeignKey("staff.id"))
    approved_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    staff = relationship("Staff", foreign_keys=[staff_id], lazy="joined")
    approver = relationship("Staff", foreign_keys=[approved_by], lazy="joined")

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class SalaryRequest(Base):
    __tablename__ = "salary_requests"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False, comment="Requested amount")
    reason = Column(Text, nullable=False, comment="Reason")
    request_date = Column(DateTime, default=datetime.utcnow, comment="Requested at")
    status = Column(String(20), default="pending", index=True, comment="pending/approved/rejected")
    approved_by = Column(Integer, ForeignKey("staff.id"))
    approved_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    staff = relationship("Staff", foreign_keys=[staff_id], lazy="joined")
    approver = relationship("Staff", foreign_keys=[approved_by], lazy="joined")
