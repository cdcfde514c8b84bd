"""Paginated review listings for the back-office"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app.db.models import FeedbackSession, User
from app.employees.repository import UserRepository
from app.feedback_sessions.repository import FeedbackSessionRepository
from app.reviews.schemas import (
    ClientListItem,
    EmployeeRatingEntry,
    EmployeeStatistics,
    PharmacyRatingItem,
    SuggestionItem,
)
from app.statistics.metrics import (
    SATISFIED_THRESHOLD,
    average,
    employee_score,
    get_satisfaction_level,
    matches_sentiment,
    rating_distribution,
)
from app.statistics.time_frames import resolve_time_frame


ANONYMOUS_CLIENT = "Anonyme"
UNKNOWN_EMPLOYEE = "Employé inconnu"


def _offset(page: int, limit: Optional[int]) -> int:
    return (page - 1) * limit if limit else 0


def _client_name(session: FeedbackSession) -> str:
    return session.client_name or ANONYMOUS_CLIENT


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class ReviewService:
    """Reads clients, ratings and suggestions out of feedback sessions"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_clients_list(
        self,
        page: int = 1,
        limit: Optional[int] = 10,
        search: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[ClientListItem], int]:
        """Clients who left contact details, most recent visit first"""
        async with self.session_factory() as db:
            sessions, total = await FeedbackSessionRepository(db).get_with_client_data(
                search=search, start=start, end=end, limit=limit, offset=_offset(page, limit)
            )
        items = [
            ClientListItem(
                session_id=s.session_id,
                first_name=s.client_first_name,
                last_name=s.client_last_name,
                email=s.client_email,
                phone=s.client_phone,
                consent=s.client_consent,
                last_visit=s.last_active_at,
            )
            for s in sessions
        ]
        return items, total

    async def get_pharmacy_ratings(
        self,
        time_filter: str = "all",
        page: int = 1,
        limit: Optional[int] = 10,
        rating_filter: Optional[int] = None,
        sentiment_filter: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[PharmacyRatingItem], int]:
        """
        Rated sessions, newest first.

        An explicit start/end takes precedence over time_filter.

        Raises:
            ValueError: Unknown time filter
        """
        if start is None and end is None and time_filter:
            window = resolve_time_frame(time_filter)
            start, end = window.start, window.end

        min_rating = SATISFIED_THRESHOLD if sentiment_filter == "positive" else None
        max_rating = SATISFIED_THRESHOLD - 1 if sentiment_filter == "negative" else None

        async with self.session_factory() as db:
            sessions, total = await FeedbackSessionRepository(db).get_rated(
                start=start,
                end=end,
                rating=rating_filter,
                min_rating=min_rating,
                max_rating=max_rating,
                limit=limit,
                offset=_offset(page, limit),
            )
        items = [
            PharmacyRatingItem(
                session_id=s.session_id,
                rating=s.pharmacy_rating,
                satisfaction_level=get_satisfaction_level(s.pharmacy_rating),
                comment=s.suggestion,
                client_name=_client_name(s),
                date=s.last_active_at,
            )
            for s in sessions
        ]
        return items, total

    async def _load_employee_ratings(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> Tuple[List[FeedbackSession], Dict[str, User]]:
        async with self.session_factory() as db:
            sessions = await FeedbackSessionRepository(db).get_with_employee_ratings(start, end)
            ids = {e["employee_id"] for s in sessions for e in s.employee_ratings}
            user_ids = [uid for uid in (_parse_uuid(i) for i in ids) if uid is not None]
            users = await UserRepository(db).get_by_ids(user_ids)
        return sessions, {str(user.id): user for user in users}

    async def get_employee_ratings(
        self,
        employee_id: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = 10,
        sentiment_filter: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[EmployeeRatingEntry], int]:
        """Employee ratings unwound one entry per rated employee, newest first"""
        sessions, users = await self._load_employee_ratings(start, end)

        entries = []
        for session in sessions:
            for rating in session.employee_ratings:
                if employee_id and rating["employee_id"] != str(employee_id):
                    continue
                if not matches_sentiment(rating["rating"], sentiment_filter):
                    continue
                user = users.get(rating["employee_id"])
                entries.append(EmployeeRatingEntry(
                    session_id=session.session_id,
                    employee_id=rating["employee_id"],
                    employee_name=user.full_name if user else UNKNOWN_EMPLOYEE,
                    position=user.position_title if user else None,
                    rating=rating["rating"],
                    satisfaction_level=get_satisfaction_level(rating["rating"]),
                    comment=rating.get("comment"),
                    client_name=_client_name(session),
                    date=session.last_active_at,
                ))

        total = len(entries)
        if limit:
            offset = _offset(page, limit)
            entries = entries[offset:offset + limit]
        return entries, total

    async def get_all_employee_statistics(self) -> List[EmployeeStatistics]:
        """Per-employee rating statistics, best score first"""
        sessions, users = await self._load_employee_ratings(None, None)

        ratings_by_employee = defaultdict(list)
        for session in sessions:
            for rating in session.employee_ratings:
                ratings_by_employee[rating["employee_id"]].append(rating["rating"])

        stats = []
        for employee_id, ratings in ratings_by_employee.items():
            user = users.get(employee_id)
            avg = average(ratings, digits=2)
            stats.append(EmployeeStatistics(
                employee_id=employee_id,
                employee_name=user.full_name if user else UNKNOWN_EMPLOYEE,
                position=user.position_title if user else None,
                total_reviews=len(ratings),
                average_rating=avg,
                score=employee_score(avg, len(ratings)),
                distribution={
                    str(star): count
                    for star, count in enumerate(rating_distribution(ratings), start=1)
                },
            ))
        stats.sort(key=lambda s: (s.score, s.total_reviews), reverse=True)
        return stats

    async def get_employee_statistics(self, employee_id: str) -> Optional[EmployeeStatistics]:
        for stats in await self.get_all_employee_statistics():
            if stats.employee_id == str(employee_id):
                return stats
        return None

    async def get_top_rated_employees(self, limit: int = 5) -> List[EmployeeStatistics]:
        return (await self.get_all_employee_statistics())[:limit]

    async def get_suggestions(
        self,
        page: int = 1,
        limit: Optional[int] = 10,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[SuggestionItem], int]:
        """Suggestions newest first; swept sessions count as handled"""
        async with self.session_factory() as db:
            sessions, total = await FeedbackSessionRepository(db).get_with_suggestions(
                start=start, end=end, limit=limit, offset=_offset(page, limit)
            )
        items = [
            SuggestionItem(
                session_id=s.session_id,
                suggestion=s.suggestion,
                client_name=_client_name(s),
                status="Traité" if s.processed else "Nouveau",
                date=s.last_active_at,
            )
            for s in sessions
        ]
        return items, total
