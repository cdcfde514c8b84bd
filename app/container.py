"""Application-wide service instances"""
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app import config
from app.employees.service import EmployeeService, PositionService
from app.feedback_sessions.service import FeedbackSessionService
from app.reports.service import ReportService
from app.reviews.service import ReviewService
from app.settings.service import SettingsService
from app.statistics.service import StatisticsService


@dataclass
class Services:
    feedback_sessions: FeedbackSessionService
    statistics: StatisticsService
    reviews: ReviewService
    employees: EmployeeService
    positions: PositionService
    settings: SettingsService
    reports: ReportService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    reports_dir: Path = config.REPORTS_DIR,
    clock: Callable[[], datetime] = datetime.utcnow,
) -> Services:
    """Wire every service to one session factory"""
    reviews = ReviewService(session_factory)
    employees = EmployeeService(session_factory)
    return Services(
        feedback_sessions=FeedbackSessionService(session_factory),
        statistics=StatisticsService(session_factory, clock=clock),
        reviews=reviews,
        employees=employees,
        positions=PositionService(session_factory),
        settings=SettingsService(session_factory),
        reports=ReportService(session_factory, reviews, employees, reports_dir=reports_dir),
    )
