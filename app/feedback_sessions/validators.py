"""Validation and state rules for feedback sessions"""
from datetime import datetime
from app.db.models import FeedbackSession
from app.feedback_sessions.exceptions import (
    InvalidRatingException,
    EmptyEmployeeRatingsException,
    InvalidStatusException,
)

VALID_STATUSES = ["active", "completed", "abandoned", "processed"]

# Statuses only move forward; "processed" is terminal.
ALLOWED_TRANSITIONS = {
    "active": {"completed", "abandoned", "processed"},
    "completed": {"processed"},
    "abandoned": {"processed"},
    "processed": set(),
}


def validate_rating(rating, field: str = "rating") -> int:
    """Ensure a star rating is an integer in 1-5"""
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidRatingException(field, rating)
    return rating


def normalize_employee_ratings(ratings) -> list[dict]:
    """
    Validate employee ratings and convert them to the stored JSON shape.

    Accepts dicts or pydantic models carrying employee_id, rating and
    an optional comment. Order is preserved and duplicates are kept.
    """
    normalized = []
    for item in ratings or []:
        if hasattr(item, "model_dump"):
            item = item.model_dump()
        employee_id = item.get("employee_id")
        if not employee_id:
            raise InvalidRatingException("employee_id", employee_id)
        normalized.append({
            "employee_id": str(employee_id),
            "rating": validate_rating(item.get("rating"), "employee rating"),
            "comment": item.get("comment") or None,
        })
    return normalized


def require_employee_ratings(ratings) -> list[dict]:
    normalized = normalize_employee_ratings(ratings)
    if not normalized:
        raise EmptyEmployeeRatingsException()
    return normalized


def validate_status(status: str) -> None:
    """Validate status value"""
    if status not in VALID_STATUSES:
        raise InvalidStatusException(status, VALID_STATUSES)


def can_transition(current: str, new: str) -> bool:
    if current == new:
        return True
    return new in ALLOWED_TRANSITIONS.get(current, set())


def apply_status(session: FeedbackSession, status: str, now: datetime) -> None:
    """Set the status and keep the completed/processed flags in step with it."""
    session.status = status
    if status == "completed":
        session.completed = True
        session.completed_at = session.completed_at or now
    if status in ("abandoned", "processed"):
        session.processed = True


def has_valid_data(session: FeedbackSession) -> bool:
    """A session is worth keeping once it holds a rating or a suggestion."""
    return bool(
        session.pharmacy_rating is not None
        or session.employee_ratings
        or session.suggestion
    )
