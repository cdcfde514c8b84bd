from uuid import UUID
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, EmailStr


class PositionRequest(BaseModel):
    """Create or rename a position"""
    title: str


class PositionResponse(BaseModel):
    id: UUID
    title: str
    created_at: datetime
    updated_at: datetime | None = None


class CreateEmployeeRequest(BaseModel):
    """Request to add a staff member"""
    first_name: str
    last_name: str
    email: EmailStr
    role: Literal["employee", "manager"] = "employee"
    position_id: UUID | None = None
    avatar: str | None = None


class UpdateEmployeeRequest(BaseModel):
    """Partial update of a staff member"""
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    role: Literal["employee", "manager"] | None = None
    position_id: UUID | None = None
    avatar: str | None = None
    is_active: bool | None = None


class EmployeeResponse(BaseModel):
    """Employee response"""
    id: UUID
    first_name: str
    last_name: str
    email: str
    role: str  # employee | manager
    position_id: UUID | None = None
    position: str | None = None
    avatar: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None
