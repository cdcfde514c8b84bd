import pytest
from datetime import datetime, timedelta
from fastapi import HTTPException
from httpx import AsyncClient
from unittest.mock import AsyncMock
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from app.db.models import FeedbackSession
from app.feedback_sessions.repository import FeedbackSessionRepository
from app.feedback_sessions.validators import has_valid_data, can_transition, validate_rating

EMPLOYEE_ID = "6f1c1e0a-3b7e-4a61-9a57-0d8f4f0c1a11"


@pytest.mark.asyncio
async def test_kiosk_flow_end_to_end(client: AsyncClient):
    """Create, enrich and complete a session through the kiosk sync endpoint."""
    response = await client.post(
        "/feedback-sessions/sync",
        json={
            "operation": "create-session",
            "device_id": "kiosk-1",
            "pharmacy_rating": 5,
            "employee_ratings": [{"employee_id": EMPLOYEE_ID, "rating": 4, "comment": "Très aimable"}],
        },
    )
    assert response.status_code == 200
    session = response.json()
    assert session["session_id"] == session["id"]
    assert session["status"] == "active"
    assert session["pharmacy_rating"] == 5
    assert session["employee_ratings"] == [
        {"employee_id": EMPLOYEE_ID, "rating": 4, "comment": "Très aimable"}
    ]

    session_id = session["session_id"]
    response = await client.post(
        "/feedback-sessions/sync",
        json={
            "operation": "client-data",
            "session_id": session_id,
            "client_data": {"first_name": "Marie", "last_name": "Curie", "email": "marie@example.com", "consent": True},
        },
    )
    assert response.status_code == 200
    assert response.json()["client_data"]["first_name"] == "Marie"

    response = await client.post(
        "/feedback-sessions/sync",
        json={"operation": "suggestion", "session_id": session_id, "suggestion": "Plus de chaises"},
    )
    assert response.json()["suggestion"] == "Plus de chaises"

    response = await client.post(
        "/feedback-sessions/sync",
        json={"operation": "complete", "session_id": session_id},
    )
    data = response.json()
    assert data["status"] == "completed"
    assert data["completed"] is True
    assert data["completed_at"] is not None

    response = await client.get(f"/feedback-sessions/{session_id}")
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_sync_unknown_operation(client: AsyncClient):
    response = await client.post(
        "/feedback-sessions/sync",
        json={"operation": "teleport", "session_id": "abc"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sync_missing_session(client: AsyncClient):
    response = await client.post(
        "/feedback-sessions/sync",
        json={"operation": "suggestion", "session_id": "does-not-exist", "suggestion": "x"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sync_requires_session_id(client: AsyncClient):
    response = await client.post("/feedback-sessions/sync", json={"operation": "complete"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_session_rejects_invalid_input(client: AsyncClient):
    """Out-of-range ratings and empty employee ratings are refused."""
    response = await client.post(
        "/feedback-sessions/sync",
        json={
            "operation": "create-session",
            "device_id": "kiosk-1",
            "pharmacy_rating": 6,
            "employee_ratings": [{"employee_id": EMPLOYEE_ID, "rating": 4}],
        },
    )
    assert response.status_code == 400

    response = await client.post(
        "/feedback-sessions/sync",
        json={
            "operation": "create-session",
            "device_id": "kiosk-1",
            "pharmacy_rating": 4,
            "employee_ratings": [],
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_unknown_session(client: AsyncClient):
    response = await client.get("/feedback-sessions/nope")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_lookup_by_external_or_storage_id(services):
    """A session is found by its external id first, then by its storage id."""
    service = services.feedback_sessions
    session = await service.sync_session({"session_id": "kiosk-abc", "device_id": "kiosk-1"})

    by_external = await service.get_session_by_id("kiosk-abc")
    by_storage = await service.get_session_by_id(str(session.id))
    assert by_external.id == session.id
    assert by_storage.id == session.id
    assert await service.get_session_by_id("unknown") is None


@pytest.mark.asyncio
async def test_initialize_session_sets_external_id(services):
    session = await services.feedback_sessions.initialize_session("kiosk-7")
    assert session.session_id == str(session.id)
    assert session.status == "active"
    assert session.employee_ratings == []

    active = await services.feedback_sessions.get_active_session_by_device_id("kiosk-7")
    assert active.id == session.id


@pytest.mark.asyncio
async def test_sync_session_is_idempotent(services, session_factory):
    """Replaying the same state leaves a single, unchanged session."""
    payload = {
        "session_id": "replayed",
        "device_id": "kiosk-1",
        "pharmacy_rating": 4,
        "employee_ratings": [{"employee_id": EMPLOYEE_ID, "rating": 5}],
        "suggestion": "RAS",
    }
    first = await services.feedback_sessions.sync_session(dict(payload))
    second = await services.feedback_sessions.sync_session(dict(payload))

    assert first.id == second.id
    assert second.pharmacy_rating == 4
    assert second.employee_ratings == [{"employee_id": EMPLOYEE_ID, "rating": 5, "comment": None}]
    async with session_factory() as db:
        count = (await db.execute(select(func.count()).select_from(FeedbackSession))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_sync_session_only_merges_present_keys(services):
    service = services.feedback_sessions
    await service.sync_session({"session_id": "partial", "device_id": "kiosk-1", "pharmacy_rating": 3})
    session = await service.sync_session({"session_id": "partial", "suggestion": "Horaires"})
    assert session.pharmacy_rating == 3
    assert session.suggestion == "Horaires"


@pytest.mark.asyncio
async def test_sync_session_without_device_creates_nothing(services):
    assert await services.feedback_sessions.sync_session({"session_id": "orphan"}) is None


@pytest.mark.asyncio
async def test_status_never_moves_backwards(services):
    service = services.feedback_sessions
    session = await service.initialize_session("kiosk-1")
    await service.complete_session(session.session_id)

    assert await service.update_session_status(session.session_id, "active") is False
    synced = await service.sync_session({"session_id": session.session_id, "status": "active"})
    assert synced.status == "completed"

    assert await service.update_session_status(session.session_id, "processed") is True
    reloaded = await service.get_session_by_id(session.session_id)
    assert reloaded.status == "processed"
    assert reloaded.processed is True


@pytest.mark.asyncio
async def test_update_session_activity(services):
    service = services.feedback_sessions
    session = await service.initialize_session("kiosk-1")
    assert await service.update_session_activity(session.session_id) is True
    assert await service.update_session_activity("missing") is False


@pytest.mark.asyncio
async def test_sweep_abandons_or_deletes_idle_sessions(services, add_sessions, make_session):
    now = datetime.utcnow()
    old = now - timedelta(hours=3)
    empty = make_session(old, session_id="empty")
    rated = make_session(old, session_id="rated", pharmacy_rating=4)
    suggestion_only = make_session(old, session_id="suggestion", suggestion="Merci")
    done = make_session(old, session_id="done", pharmacy_rating=5, status="completed")
    fresh = make_session(now, session_id="fresh", pharmacy_rating=2)
    await add_sessions(empty, rated, suggestion_only, done, fresh)

    service = services.feedback_sessions
    assert await service.process_abandoned_sessions(120) == 3

    assert await service.get_session_by_id("empty") is None
    for session_id in ("rated", "suggestion"):
        swept = await service.get_session_by_id(session_id)
        assert swept.status == "abandoned"
        assert swept.processed is True
    assert (await service.get_session_by_id("done")).status == "completed"
    assert (await service.get_session_by_id("fresh")).status == "active"

    # Swept sessions are never picked up again
    assert await service.process_abandoned_sessions(120) == 0


@pytest.mark.asyncio
async def test_sweep_honours_session_inactivity_timeout(services, add_sessions, make_session):
    idle = make_session(
        datetime.utcnow() - timedelta(minutes=5),
        session_id="kiosk-short",
        pharmacy_rating=3,
        inactivity_timeout=2,
    )
    await add_sessions(idle)

    assert await services.feedback_sessions.process_abandoned_sessions(120) == 1
    assert (await services.feedback_sessions.get_session_by_id("kiosk-short")).status == "abandoned"


@pytest.mark.asyncio
async def test_sweep_route_requires_permission(client: AsyncClient, app, mock_jwt_payload):
    from app.auth.middleware import verify_token

    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload.model_copy(update={"permissions": []})
    response = await client.post(
        "/feedback-sessions/sweep",
        json={"older_than_minutes": 60},
        headers={"Authorization": "Bearer mock_token"},
    )
    assert response.status_code == 403
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_sweep_route(auth_client: AsyncClient):
    response = await auth_client.post("/feedback-sessions/sweep", json={"older_than_minutes": 60})
    assert response.status_code == 200
    assert response.json() == {"processed": 0}


def test_has_valid_data(make_session):
    now = datetime.utcnow()
    assert has_valid_data(make_session(now)) is False
    assert has_valid_data(make_session(now, pharmacy_rating=1)) is True
    assert has_valid_data(make_session(now, employee_ratings=[{"employee_id": "e", "rating": 3}])) is True
    assert has_valid_data(make_session(now, suggestion="Ok")) is True
    assert has_valid_data(make_session(now, suggestion="")) is False


def test_status_transitions():
    assert can_transition("active", "completed")
    assert can_transition("completed", "processed")
    assert can_transition("completed", "completed")
    assert not can_transition("completed", "active")
    assert not can_transition("processed", "abandoned")


def test_validate_rating():
    assert validate_rating(1) == 1
    assert validate_rating(5) == 5
    for invalid in (0, 6, 3.5, "4", True, None):
        with pytest.raises(HTTPException):
            validate_rating(invalid)


@pytest.mark.asyncio
async def test_sweep_skips_sessions_that_fail(services, add_sessions, make_session, monkeypatch):
    old = datetime.utcnow() - timedelta(hours=3)
    await add_sessions(make_session(old, session_id="broken"), make_session(old, session_id="empty"))
    original_delete = FeedbackSessionRepository.delete

    async def failing_delete(self, session):
        if session.session_id == "broken":
            raise SQLAlchemyError("delete failed")
        await original_delete(self, session)

    monkeypatch.setattr(FeedbackSessionRepository, "delete", failing_delete)

    assert await services.feedback_sessions.process_abandoned_sessions(120) == 1
    assert await services.feedback_sessions.get_session_by_id("empty") is None
    assert (await services.feedback_sessions.get_session_by_id("broken")).status == "active"


@pytest.mark.asyncio
async def test_lookup_returns_none_on_storage_error(services, monkeypatch):
    await services.feedback_sessions.sync_session({"session_id": "kiosk-abc", "device_id": "kiosk-1"})
    monkeypatch.setattr(
        FeedbackSessionRepository,
        "get_by_session_id",
        AsyncMock(side_effect=SQLAlchemyError("database unavailable")),
    )

    assert await services.feedback_sessions.get_session_by_id("kiosk-abc") is None


@pytest.mark.asyncio
async def test_suggestion_operation_requires_suggestion(client: AsyncClient, services):
    await services.feedback_sessions.sync_session(
        {"session_id": "kiosk-abc", "device_id": "kiosk-1", "suggestion": "Plus de parking"}
    )

    response = await client.post(
        "/feedback-sessions/sync",
        json={"operation": "suggestion", "session_id": "kiosk-abc"},
    )
    assert response.status_code == 400
    assert (await services.feedback_sessions.get_session_by_id("kiosk-abc")).suggestion == "Plus de parking"


@pytest.mark.asyncio
async def test_state_converts_started_at_to_utc(client: AsyncClient):
    response = await client.post(
        "/feedback-sessions/state",
        json={"session_id": "kiosk-abc", "device_id": "kiosk-1", "started_at": "2026-06-15T10:00:00+02:00"},
    )
    assert response.status_code == 200
    assert response.json()["started_at"] == "2026-06-15T08:00:00"
