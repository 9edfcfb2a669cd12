"""
Role schemas
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class RoleBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50, description="Role name")
    display_name: str = Field(..., min_length=2, max_length=100, description="Display name")
    description: Optional[str] = Field(None, max_length=200, description="Description")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip().lower()


class RoleCreate(RoleBase):
    """Create a role; missing permission codes default to False"""
    permissions: Dict[str, bool] = Field(default_factory=dict, description="Permission map")
    is_active: bool = True


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=200)
    permissions: Optional[Dict[str, bool]] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class RoleResponse(RoleBase):
    id: int
    organization_id: int
    permissions: Dict[str, bool]
    is_system: bool
    is_active: bool
    staff_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RoleListResponse(BaseModel):
    data: List[RoleResponse]
    total: int


class RoleName(BaseModel):
    """Dropdown entry"""
    id: int
    name: str
    display_name: str
