"""Custom exceptions for feedback sessions"""
from fastapi import HTTPException, status


class FeedbackSessionNotFoundException(HTTPException):
    """Raised when a feedback session is not found"""
    def __init__(self, session_id: str = None):
        detail = "Feedback session not found"
        if session_id:
            detail = f"Feedback session {session_id} not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidRatingException(HTTPException):
    """Raised when a star rating is missing or outside 1-5"""
    def __init__(self, field: str, value=None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field}: {value!r}. Must be an integer between 1 and 5"
        )


class EmptyEmployeeRatingsException(HTTPException):
    """Raised when a kiosk submission carries no employee rating"""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one employee rating is required"
        )


class InvalidStatusException(HTTPException):
    """Raised when an unknown status is provided"""
    def __init__(self, status_value: str, valid_statuses: list):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status '{status_value}'. Must be one of: {', '.join(valid_statuses)}"
        )


class InvalidSyncOperationException(HTTPException):
    """Raised when the kiosk sends an unknown sync operation"""
    def __init__(self, operation: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown operation '{operation}'"
        )


class MissingFieldException(HTTPException):
    """Raised when a sync operation lacks a required field"""
    def __init__(self, field: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} is required"
        )
