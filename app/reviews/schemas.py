from datetime import datetime
from pydantic import BaseModel
from app.statistics.metrics import SatisfactionLevel
from app.statistics.schemas import PharmacyRatingStats


class ClientListItem(BaseModel):
    """Client who left contact details on the kiosk"""
    session_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    consent: bool = False
    last_visit: datetime


class ClientListPage(BaseModel):
    items: list[ClientListItem]
    total: int
    page: int
    limit: int


class PharmacyRatingItem(BaseModel):
    session_id: str | None = None
    rating: int
    satisfaction_level: SatisfactionLevel
    comment: str | None = None
    client_name: str
    date: datetime


class PharmacyRatingPage(BaseModel):
    items: list[PharmacyRatingItem]
    total: int
    page: int
    limit: int
    stats: PharmacyRatingStats


class EmployeeRatingEntry(BaseModel):
    """One employee rating unwound from its session"""
    session_id: str | None = None
    employee_id: str
    employee_name: str
    position: str | None = None
    rating: int
    satisfaction_level: SatisfactionLevel
    comment: str | None = None
    client_name: str
    date: datetime


class EmployeeRatingPage(BaseModel):
    items: list[EmployeeRatingEntry]
    total: int
    page: int
    limit: int


class EmployeeStatistics(BaseModel):
    employee_id: str
    employee_name: str
    position: str | None = None
    total_reviews: int = 0
    average_rating: float = 0.0
    score: float = 0.0
    distribution: dict[str, int] = {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


class SuggestionItem(BaseModel):
    session_id: str | None = None
    suggestion: str
    client_name: str
    status: str  # Nouveau | Traité
    date: datetime


class SuggestionPage(BaseModel):
    items: list[SuggestionItem]
    total: int
    page: int
    limit: int
