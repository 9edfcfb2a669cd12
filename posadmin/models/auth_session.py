from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from posadmin.db.base import Base


class AuthSession(Base):
    """Signed-in session, one row per bearer token"""
    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), nullable=False, unique=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_expired(self) -> bool:
        return self.expires_at < datetime.utcnow()
