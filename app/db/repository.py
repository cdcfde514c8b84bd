"""Shared repository base helpers."""
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Base repository with common DB helpers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, instance):
        """Insert a new row and reload it with server-side defaults."""
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def save(self, instance):
        """Persist changes made to an already loaded row."""
        if hasattr(instance, "updated_at"):
            instance.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def remove(self, instance) -> None:
        """Hard delete a row."""
        await self.db.delete(instance)
        await self.db.commit()
