from fastapi import APIRouter, Depends, Request
from app import config
from app.feedback_sessions.service import FeedbackSessionService
from app.feedback_sessions.schemas import (
    SyncOperationRequest,
    SessionStateRequest,
    SweepRequest,
    SweepResponse,
    FeedbackSessionResponse,
)
from app.feedback_sessions.exceptions import (
    FeedbackSessionNotFoundException,
    InvalidSyncOperationException,
    MissingFieldException,
)
from app.feedback_sessions.validators import validate_rating, require_employee_ratings
from app.auth.middleware import JWTPayload, verify_token, check_permission


def get_feedback_session_service(request: Request) -> FeedbackSessionService:
    """Dependency to get the shared FeedbackSessionService"""
    return request.app.state.services.feedback_sessions


router = APIRouter(
    prefix="/feedback-sessions",
    tags=["feedback-sessions"],
)

SESSION_OPERATIONS = ("pharmacy-rating", "employee-ratings", "client-data", "suggestion", "complete")


def to_response(session) -> FeedbackSessionResponse:
    """Convert FeedbackSession model to response schema."""
    return FeedbackSessionResponse(
        id=session.id,
        session_id=session.session_id,
        device_id=session.device_id,
        pharmacy_rating=session.pharmacy_rating,
        employee_ratings=session.employee_ratings or [],
        client_data=session.client_data,
        suggestion=session.suggestion,
        status=session.status,
        completed=session.completed,
        processed=session.processed,
        started_at=session.started_at,
        last_active_at=session.last_active_at,
        completed_at=session.completed_at,
        inactivity_timeout=session.inactivity_timeout,
    )


@router.post("/sync", response_model=FeedbackSessionResponse)
async def sync_operation(
    request: SyncOperationRequest,
    service: FeedbackSessionService = Depends(get_feedback_session_service),
):
    """
    Apply one kiosk step to a feedback session.

    `create-session` opens a short-lived session holding the pharmacy
    and employee ratings; every other operation updates an existing
    session identified by `session_id`.
    """
    if request.operation == "create-session":
        rating = validate_rating(request.pharmacy_rating, "pharmacy rating")
        employee_ratings = require_employee_ratings(request.employee_ratings)
        if not request.device_id:
            raise MissingFieldException("device_id")

        session = await service.initialize_session(request.device_id, config.KIOSK_INACTIVITY_TIMEOUT)
        await service.update_pharmacy_rating(session.session_id, rating)
        session = await service.update_employee_ratings(session.session_id, employee_ratings)
        return to_response(session)

    if request.operation not in SESSION_OPERATIONS:
        raise InvalidSyncOperationException(request.operation)
    if not request.session_id:
        raise MissingFieldException("session_id")

    if request.operation == "pharmacy-rating":
        session = await service.update_pharmacy_rating(request.session_id, request.pharmacy_rating)
    elif request.operation == "employee-ratings":
        session = await service.update_employee_ratings(
            request.session_id, require_employee_ratings(request.employee_ratings)
        )
    elif request.operation == "client-data":
        if request.client_data is None:
            raise MissingFieldException("client_data")
        session = await service.update_client_data(request.session_id, request.client_data)
    elif request.operation == "suggestion":
        if request.suggestion is None:
            raise MissingFieldException("suggestion")
        session = await service.update_suggestion(request.session_id, request.suggestion)
    else:
        session = await service.complete_session(request.session_id)

    if session is None:
        raise FeedbackSessionNotFoundException(request.session_id)
    return to_response(session)


@router.post("/state", response_model=FeedbackSessionResponse)
async def sync_session_state(
    request: SessionStateRequest,
    service: FeedbackSessionService = Depends(get_feedback_session_service),
):
    """Upsert a session from state resent after a connectivity gap"""
    session = await service.sync_session(request.model_dump(exclude_unset=True))
    if session is None:
        raise MissingFieldException("device_id")
    return to_response(session)


@router.post("/sweep", response_model=SweepResponse)
async def sweep_abandoned_sessions(
    request: SweepRequest,
    service: FeedbackSessionService = Depends(get_feedback_session_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Archive or delete idle sessions.

    Required permission: feedback-session:sweep
    """
    check_permission(jwt_payload, "feedback-session:sweep")
    processed = await service.process_abandoned_sessions(request.older_than_minutes)
    return SweepResponse(processed=processed)


@router.get("/{session_id}", response_model=FeedbackSessionResponse)
async def get_feedback_session(
    session_id: str,
    service: FeedbackSessionService = Depends(get_feedback_session_service),
):
    """Get a feedback session by external or storage id"""
    session = await service.get_session_by_id(session_id)
    if session is None:
        raise FeedbackSessionNotFoundException(session_id)
    return to_response(session)
