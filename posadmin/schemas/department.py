from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class DepartmentBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Department name")
    description: Optional[str] = Field(None, max_length=500)


class DepartmentCreate(DepartmentBase):
    pass


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class DepartmentResponse(DepartmentBase):
    id: int
    organization_id: int
    staff_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DepartmentListResponse(BaseModel):
    data: List[DepartmentResponse]
    total: int
