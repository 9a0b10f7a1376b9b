from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator


class DepartmentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=500)
    head_user_id: Optional[int] = None

    @validator("name")
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value


class DepartmentCreate(DepartmentBase):
    is_active: bool = True


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=500)
    head_user_id: Optional[int] = None
    is_active: Optional[bool] = None


class DepartmentOut(DepartmentBase):
    id: int
    is_active: bool
    member_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DepartmentMemberAdd(BaseModel):
    user_ids: List[int] = Field(..., min_length=1)


class DepartmentMemberOut(BaseModel):
    id: int
    department_id: int
    user_id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
    joined_at: datetime
