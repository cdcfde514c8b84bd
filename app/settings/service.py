"""Application settings"""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app.db.models import Settings
from app.settings.repository import SettingsRepository
from app.settings.schemas import FeedbackPageSettings, ReportSettings, SettingsView

logger = logging.getLogger(__name__)

FEEDBACK_PAGE_FIELDS = tuple(FeedbackPageSettings.model_fields)


def to_view_model(settings: Settings) -> SettingsView:
    return SettingsView(
        dark_mode=settings.dark_mode,
        email_notifications=settings.email_notifications,
        auto_generate_monthly_report=settings.auto_generate_monthly_report,
        monthly_report_format=settings.monthly_report_format,
        feedback_pages=FeedbackPageSettings(
            **{field: getattr(settings, field) for field in FEEDBACK_PAGE_FIELDS}
        ),
        updated_by=settings.updated_by,
        updated_at=settings.updated_at,
    )


def from_view_model(data: dict) -> dict:
    """Flatten a (partial) view payload into column values, dropping unset keys"""
    values = {k: v for k, v in data.items() if k != "feedback_pages" and v is not None}
    for field, value in (data.get("feedback_pages") or {}).items():
        if value is not None:
            values[field] = value
    return values


class SettingsService:
    """Reads and updates the single settings row, creating it on first use"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _get_or_create(self, repository: SettingsRepository) -> Settings:
        settings = await repository.get()
        if settings is None:
            settings = await repository.add(Settings())
            logger.info("Default settings created")
        return settings

    async def get_settings(self) -> SettingsView:
        async with self.session_factory() as db:
            return to_view_model(await self._get_or_create(SettingsRepository(db)))

    async def update_settings(self, data: dict, user_id: Optional[str] = None) -> SettingsView:
        async with self.session_factory() as db:
            repository = SettingsRepository(db)
            settings = await self._get_or_create(repository)
            for field, value in from_view_model(data).items():
                setattr(settings, field, value)
            settings.updated_by = user_id
            return to_view_model(await repository.save(settings))

    async def get_report_settings(self) -> ReportSettings:
        view = await self.get_settings()
        return ReportSettings(
            auto_generate_monthly_report=view.auto_generate_monthly_report,
            monthly_report_format=view.monthly_report_format,
        )

    async def get_feedback_page_settings(self) -> FeedbackPageSettings:
        return (await self.get_settings()).feedback_pages
