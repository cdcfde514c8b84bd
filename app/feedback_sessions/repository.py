"""Feedback Session Repository Layer"""
from uuid import UUID
from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy import select, func, and_, or_
from app.db.models import FeedbackSession
from app.db.repository import BaseRepository


class FeedbackSessionRepository(BaseRepository):
    """Repository for feedback session database operations"""

    async def create(self, session: FeedbackSession) -> FeedbackSession:
        """Create a new feedback session"""
        return await self.add(session)

    async def update(self, session: FeedbackSession) -> FeedbackSession:
        """Update feedback session"""
        return await self.save(session)

    async def delete(self, session: FeedbackSession) -> None:
        """Hard delete feedback session"""
        await self.remove(session)

    async def get_by_session_id(self, session_id: str) -> Optional[FeedbackSession]:
        """Get feedback session by its external identifier"""
        stmt = select(FeedbackSession).where(FeedbackSession.session_id == session_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, storage_id: UUID) -> Optional[FeedbackSession]:
        """Get feedback session by storage ID"""
        stmt = select(FeedbackSession).where(FeedbackSession.id == storage_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_device(self, device_id: str) -> Optional[FeedbackSession]:
        """Get the most recent active session for a kiosk"""
        stmt = select(FeedbackSession).where(
            and_(
                FeedbackSession.device_id == device_id,
                FeedbackSession.status == "active",
            )
        ).order_by(FeedbackSession.last_active_at.desc()).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_sweep_candidates(self) -> List[FeedbackSession]:
        """Get active sessions that have not been swept yet"""
        stmt = select(FeedbackSession).where(
            and_(
                FeedbackSession.status == "active",
                FeedbackSession.processed.is_(False),
            )
        ).order_by(FeedbackSession.last_active_at.asc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_in_window(
        self,
        start: datetime,
        end: datetime,
        rated_only: bool = False,
    ) -> List[FeedbackSession]:
        """Get sessions whose last activity falls in [start, end)"""
        conditions = [
            FeedbackSession.last_active_at >= start,
            FeedbackSession.last_active_at < end,
        ]
        if rated_only:
            conditions.append(FeedbackSession.pharmacy_rating.is_not(None))
        stmt = select(FeedbackSession).where(and_(*conditions)).order_by(
            FeedbackSession.last_active_at.desc()
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_with_client_data(
        self,
        search: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 10,
        offset: int = 0,
    ) -> Tuple[List[FeedbackSession], int]:
        """Get sessions where the client left contact details, newest first"""
        conditions = [
            or_(
                FeedbackSession.client_first_name.is_not(None),
                FeedbackSession.client_last_name.is_not(None),
                FeedbackSession.client_email.is_not(None),
                FeedbackSession.client_phone.is_not(None),
            )
        ]
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(FeedbackSession.client_first_name).like(pattern),
                    func.lower(FeedbackSession.client_last_name).like(pattern),
                    func.lower(FeedbackSession.client_email).like(pattern),
                    func.lower(FeedbackSession.client_phone).like(pattern),
                )
            )
        conditions.extend(self._window_conditions(start, end))
        return await self._paginate(conditions, limit, offset)

    async def get_rated(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        rating: Optional[int] = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
        limit: Optional[int] = 10,
        offset: int = 0,
    ) -> Tuple[List[FeedbackSession], int]:
        """Get sessions carrying a pharmacy rating, newest first"""
        conditions = [FeedbackSession.pharmacy_rating.is_not(None)]
        conditions.extend(self._window_conditions(start, end))
        if rating is not None:
            conditions.append(FeedbackSession.pharmacy_rating == rating)
        if min_rating is not None:
            conditions.append(FeedbackSession.pharmacy_rating >= min_rating)
        if max_rating is not None:
            conditions.append(FeedbackSession.pharmacy_rating <= max_rating)
        return await self._paginate(conditions, limit, offset)

    async def get_with_suggestions(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 10,
        offset: int = 0,
    ) -> Tuple[List[FeedbackSession], int]:
        """Get sessions with a non-empty suggestion, newest first"""
        conditions = [
            FeedbackSession.suggestion.is_not(None),
            FeedbackSession.suggestion != "",
        ]
        conditions.extend(self._window_conditions(start, end))
        return await self._paginate(conditions, limit, offset)

    async def get_with_employee_ratings(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[FeedbackSession]:
        """Get sessions that hold at least one employee rating, newest first"""
        stmt = select(FeedbackSession).where(
            *self._window_conditions(start, end)
        ).order_by(FeedbackSession.last_active_at.desc())
        result = await self.db.execute(stmt)
        # JSON array length is not portable across backends
        return [s for s in result.scalars().all() if s.employee_ratings]

    def _window_conditions(self, start: Optional[datetime], end: Optional[datetime]) -> list:
        conditions = []
        if start is not None:
            conditions.append(FeedbackSession.last_active_at >= start)
        if end is not None:
            conditions.append(FeedbackSession.last_active_at <= end)
        return conditions

    async def _paginate(self, conditions: list, limit: Optional[int], offset: int) -> Tuple[List[FeedbackSession], int]:
        count_stmt = select(func.count()).select_from(FeedbackSession).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()
        stmt = (
            select(FeedbackSession)
            .where(*conditions)
            .order_by(FeedbackSession.last_active_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total
