"""Employee and Position Repository Layer"""
from uuid import UUID
from typing import Optional, List
from sqlalchemy import select, func, or_
from app.db.models import User, Position
from app.db.repository import BaseRepository


class UserRepository(BaseRepository):
    """Repository for pharmacy staff"""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(self, user_ids: List[UUID]) -> List[User]:
        """Get users by a list of IDs, ignoring unknown ones"""
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(user_ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = True,
    ) -> List[User]:
        """List users sorted by last then first name"""
        conditions = []
        if role:
            conditions.append(User.role == role)
        if not include_inactive:
            conditions.append(User.is_active.is_(True))
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                    func.lower(User.email).like(pattern),
                )
            )
        stmt = select(User).where(*conditions).order_by(User.last_name, User.first_name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_by_position(self, position_id: UUID) -> int:
        stmt = select(func.count()).select_from(User).where(User.position_id == position_id)
        return (await self.db.execute(stmt)).scalar_one()


class PositionRepository(BaseRepository):
    """Repository for job titles"""

    async def get_by_id(self, position_id: UUID) -> Optional[Position]:
        stmt = select(Position).where(Position.id == position_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_title(self, title: str) -> Optional[Position]:
        stmt = select(Position).where(func.lower(Position.title) == title.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self) -> List[Position]:
        """List positions sorted by title"""
        stmt = select(Position).order_by(Position.title)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
