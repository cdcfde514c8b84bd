"""Report Repository Layer"""
from uuid import UUID
from typing import Optional, List, Tuple
from sqlalchemy import select, func, update
from app.db.models import Report
from app.db.repository import BaseRepository


class ReportRepository(BaseRepository):
    """Repository for generated report records"""

    async def get_by_id(self, report_id: UUID) -> Optional[Report]:
        stmt = select(Report).where(Report.id == report_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_recent(self, limit: int = 10, offset: int = 0) -> Tuple[List[Report], int]:
        """Get reports newest first with the total count"""
        total = (await self.db.execute(select(func.count()).select_from(Report))).scalar_one()
        stmt = select(Report).order_by(Report.date.desc()).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def increment_download_count(self, report_id: UUID) -> bool:
        """Atomically add one download; False when the report does not exist"""
        stmt = (
            update(Report)
            .where(Report.id == report_id)
            .values(download_count=Report.download_count + 1)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0
