"""Settings Repository Layer"""
from typing import Optional
from sqlalchemy import select
from app.db.models import Settings
from app.db.repository import BaseRepository


class SettingsRepository(BaseRepository):
    """Repository for the single settings row"""

    async def get(self) -> Optional[Settings]:
        """Get the settings row, oldest first if several exist"""
        stmt = select(Settings).order_by(Settings.created_at.asc()).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
