"""Feedback session lifecycle"""
import logging
from uuid import UUID
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app import config
from app.db.models import FeedbackSession
from app.feedback_sessions.repository import FeedbackSessionRepository
from app.feedback_sessions.validators import (
    validate_rating,
    validate_status,
    normalize_employee_ratings,
    can_transition,
    apply_status,
    has_valid_data,
)

logger = logging.getLogger(__name__)


def _parse_storage_id(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class FeedbackSessionService:
    """Creates, updates, completes and sweeps kiosk feedback sessions"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _find(self, repository: FeedbackSessionRepository, session_id: str) -> Optional[FeedbackSession]:
        """
        Resolve a session from either identifier.

        The external session_id is tried first; the storage id is only
        tried when the value parses as a UUID.
        """
        session = await repository.get_by_session_id(str(session_id))
        if session is not None:
            return session
        storage_id = _parse_storage_id(session_id)
        if storage_id is None:
            return None
        return await repository.get_by_id(storage_id)

    async def initialize_session(
        self,
        device_id: str,
        inactivity_timeout: int = config.SESSION_INACTIVITY_TIMEOUT,
    ) -> FeedbackSession:
        """
        Start a new active session for a kiosk.

        The row is inserted first so that the storage id exists, then the
        external session_id is set to it.
        """
        now = datetime.utcnow()
        async with self.session_factory() as db:
            repository = FeedbackSessionRepository(db)
            session = await repository.create(FeedbackSession(
                device_id=device_id,
                employee_ratings=[],
                status="active",
                inactivity_timeout=inactivity_timeout,
                started_at=now,
                last_active_at=now,
            ))
            session.session_id = str(session.id)
            return await repository.update(session)

    async def get_session_by_id(self, session_id: str) -> Optional[FeedbackSession]:
        """Get a session by external or storage id, None when missing or on storage errors"""
        try:
            async with self.session_factory() as db:
                return await self._find(FeedbackSessionRepository(db), session_id)
        except SQLAlchemyError:
            logger.exception("Failed to load feedback session %s", session_id)
            return None

    async def get_active_session_by_device_id(self, device_id: str) -> Optional[FeedbackSession]:
        try:
            async with self.session_factory() as db:
                return await FeedbackSessionRepository(db).get_active_by_device(device_id)
        except SQLAlchemyError:
            logger.exception("Failed to load active session for device %s", device_id)
            return None

    async def _mutate(self, session_id: str, mutate) -> Optional[FeedbackSession]:
        """Load, apply one change, stamp activity and save"""
        async with self.session_factory() as db:
            repository = FeedbackSessionRepository(db)
            session = await self._find(repository, session_id)
            if session is None:
                return None
            now = datetime.utcnow()
            mutate(session, now)
            session.last_active_at = now
            return await repository.update(session)

    async def update_pharmacy_rating(self, session_id: str, rating: int) -> Optional[FeedbackSession]:
        validate_rating(rating, "pharmacy rating")

        def mutate(session, now):
            session.pharmacy_rating = rating

        return await self._mutate(session_id, mutate)

    async def update_employee_ratings(self, session_id: str, employee_ratings: list) -> Optional[FeedbackSession]:
        """Replace the employee ratings of a session wholesale"""
        ratings = normalize_employee_ratings(employee_ratings)

        def mutate(session, now):
            session.employee_ratings = ratings

        return await self._mutate(session_id, mutate)

    async def update_client_data(self, session_id: str, client_data: dict) -> Optional[FeedbackSession]:
        if hasattr(client_data, "model_dump"):
            client_data = client_data.model_dump()

        def mutate(session, now):
            session.client_data = client_data

        return await self._mutate(session_id, mutate)

    async def update_suggestion(self, session_id: str, suggestion: str) -> Optional[FeedbackSession]:
        def mutate(session, now):
            session.suggestion = suggestion

        return await self._mutate(session_id, mutate)

    async def complete_session(self, session_id: str) -> Optional[FeedbackSession]:
        """Mark a session as completed once the client reaches the end of the flow"""
        def mutate(session, now):
            apply_status(session, "completed", now)
            session.completed_at = now

        return await self._mutate(session_id, mutate)

    async def update_session_activity(self, session_id: str) -> bool:
        session = await self._mutate(session_id, lambda session, now: None)
        return session is not None

    async def update_session_status(self, session_id: str, status: str) -> bool:
        """Move a session to a new status; backwards moves are refused"""
        validate_status(status)
        refused = []

        def mutate(session, now):
            if not can_transition(session.status, status):
                refused.append(session.status)
                return
            apply_status(session, status, now)

        session = await self._mutate(session_id, mutate)
        if refused:
            logger.warning("Refused status change %s -> %s for session %s", refused[0], status, session_id)
            return False
        return session is not None

    async def sync_session(self, session_data: dict) -> Optional[FeedbackSession]:
        """
        Upsert a session from state resent by the kiosk.

        Only keys present in session_data are merged into an existing
        session; a missing session is created with defaults for the
        absent fields. Returns None when a new session cannot be created.
        """
        session_id = session_data.get("session_id")
        now = datetime.utcnow()
        async with self.session_factory() as db:
            repository = FeedbackSessionRepository(db)
            session = await self._find(repository, session_id) if session_id else None

            if session is not None:
                self._merge(session, session_data, now)
                session.last_active_at = now
                return await repository.update(session)

            device_id = session_data.get("device_id")
            if not device_id:
                logger.warning("Cannot create session %s without a device_id", session_id)
                return None

            session = FeedbackSession(
                session_id=session_id,
                device_id=device_id,
                employee_ratings=[],
                status="active",
                inactivity_timeout=session_data.get("inactivity_timeout") or config.SESSION_INACTIVITY_TIMEOUT,
                started_at=session_data.get("started_at") or now,
                last_active_at=now,
            )
            self._merge(session, session_data, now)
            session = await repository.create(session)
            if not session.session_id:
                session.session_id = str(session.id)
                session = await repository.update(session)
            return session

    def _merge(self, session: FeedbackSession, data: dict, now: datetime) -> None:
        if data.get("pharmacy_rating") is not None:
            session.pharmacy_rating = validate_rating(data["pharmacy_rating"], "pharmacy rating")
        if data.get("employee_ratings"):
            session.employee_ratings = normalize_employee_ratings(data["employee_ratings"])
        if data.get("client_data") is not None:
            session.client_data = data["client_data"]
        if data.get("suggestion") is not None:
            session.suggestion = data["suggestion"]

        status = data.get("status")
        if data.get("completed"):
            status = "completed"
        if status:
            validate_status(status)
            if can_transition(session.status, status):
                apply_status(session, status, now)
            else:
                logger.warning(
                    "Ignoring status %s for session %s currently %s",
                    status, session.session_id, session.status,
                )

    async def process_abandoned_sessions(self, older_than_minutes: int = config.ABANDONED_SESSION_MINUTES) -> int:
        """
        Sweep idle active sessions.

        A session is swept once it has been idle longer than
        older_than_minutes or than its own inactivity timeout. Sessions
        holding data become abandoned, empty ones are deleted. Returns
        how many sessions were swept; failures are logged, never raised.
        """
        now = datetime.utcnow()
        cutoff = now - timedelta(minutes=older_than_minutes)
        try:
            async with self.session_factory() as db:
                candidates = await FeedbackSessionRepository(db).get_sweep_candidates()
                stale_ids = [
                    s.id for s in candidates
                    if s.last_active_at < cutoff or s.is_stale(now)
                ]
        except Exception:
            logger.exception("Failed to list sessions for sweep")
            return 0

        swept = 0
        for storage_id in stale_ids:
            try:
                async with self.session_factory() as db:
                    repository = FeedbackSessionRepository(db)
                    session = await repository.get_by_id(storage_id)
                    if session is None or session.status != "active":
                        continue
                    if has_valid_data(session):
                        apply_status(session, "abandoned", now)
                        await repository.update(session)
                        logger.info("Session %s marked abandoned", session.session_id)
                    else:
                        await repository.delete(session)
                        logger.info("Empty session %s deleted", storage_id)
                swept += 1
            except Exception:
                logger.exception("Failed to sweep session %s", storage_id)

        logger.info("Processed %s abandoned sessions", swept)
        return swept
