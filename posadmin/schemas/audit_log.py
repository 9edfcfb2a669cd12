from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    action_type: str
    entity_type: str
    entity_id: Optional[int] = None
    message: Optional[str] = None
    details: Optional[dict] = None
    performed_by: Optional[int] = None
    performer_name: str = ""
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    data: List[AuditLogResponse]
    total: int
    page: int
    limit: int
