from uuid import UUID
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, field_validator
from app.utils.timezone import to_naive_utc


class EmployeeRatingItem(BaseModel):
    """One employee rated during a session"""
    employee_id: str
    rating: int
    comment: str | None = None


class ClientData(BaseModel):
    """Contact details optionally left by the client"""
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    consent: bool = False


class SyncOperationRequest(BaseModel):
    """Single kiosk step sent to /feedback-sessions/sync"""
    operation: str  # create-session | pharmacy-rating | employee-ratings | client-data | suggestion | complete
    session_id: str | None = None
    device_id: str | None = None
    pharmacy_rating: int | None = None
    employee_ratings: list[EmployeeRatingItem] | None = None
    client_data: ClientData | None = None
    suggestion: str | None = None


class SessionStateRequest(BaseModel):
    """Full or partial session state resent by an offline-tolerant kiosk"""
    session_id: str | None = None
    device_id: str | None = None
    pharmacy_rating: int | None = None
    employee_ratings: list[EmployeeRatingItem] | None = None
    client_data: ClientData | None = None
    suggestion: str | None = None
    status: Literal["active", "completed", "abandoned", "processed"] | None = None
    completed: bool | None = None
    started_at: datetime | None = None
    inactivity_timeout: int | None = None

    @field_validator("started_at")
    @classmethod
    def normalize_utc(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class SweepRequest(BaseModel):
    older_than_minutes: int = 120


class SweepResponse(BaseModel):
    processed: int


class FeedbackSessionResponse(BaseModel):
    """Feedback session response"""
    id: UUID
    session_id: str | None = None
    device_id: str
    pharmacy_rating: int | None = None
    employee_ratings: list[EmployeeRatingItem] = []
    client_data: ClientData | None = None
    suggestion: str | None = None
    status: str  # active | completed | abandoned | processed
    completed: bool
    processed: bool
    started_at: datetime
    last_active_at: datetime
    completed_at: datetime | None = None
    inactivity_timeout: int
