"""Dashboard statistics computed from feedback sessions"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app.db.models import FeedbackSession
from app.employees.repository import UserRepository, PositionRepository
from app.feedback_sessions.repository import FeedbackSessionRepository
from app.statistics.buckets import MONTH_LABELS, aggregate_by_bucket, bucket_labels
from app.statistics.metrics import (
    SATISFIED_THRESHOLD,
    average,
    completion_rate,
    compute_metrics,
    has_feedback,
    percent_change,
    point_change,
    rating_distribution,
    satisfaction_rate,
    summarize_window,
)
from app.statistics.schemas import (
    ChartData,
    ChartDataset,
    ClientCompletionData,
    MultiSeriesChartData,
    PharmacyRatingStats,
    RoleDistribution,
    StatisticsSummary,
)
from app.statistics.time_frames import DEFAULT_TIME_FRAME, TimeWindow, resolve_time_frame
from app.utils.timezone import convert_from_cet, convert_to_cet

logger = logging.getLogger(__name__)

STAR_LABELS = [f"{star}★" for star in range(1, 6)]
TIME_SLOTS = [(hour, hour + 2) for hour in range(8, 20, 2)]
TIME_SLOT_LABELS = [f"{start}h-{end}h" for start, end in TIME_SLOTS]
UNASSIGNED_ROLE = "Non assigné"


class StatisticsService:
    """
    Time-bucketed series and KPIs for the back-office dashboard.

    Every public method returns a zero-filled result of the right shape
    when anything goes wrong while reading sessions.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def _window(self, time_frame: str) -> TimeWindow:
        try:
            return resolve_time_frame(time_frame, self.clock())
        except ValueError:
            logger.warning("Unknown time frame %r, falling back to %s", time_frame, DEFAULT_TIME_FRAME)
            return resolve_time_frame(DEFAULT_TIME_FRAME, self.clock())

    async def _sessions(self, start: datetime, end: datetime, rated_only: bool = False) -> List[FeedbackSession]:
        async with self.session_factory() as db:
            return await FeedbackSessionRepository(db).get_in_window(start, end, rated_only)

    async def get_pharmacy_rating_trends(self, time_frame: str = "year") -> ChartData:
        """Average pharmacy rating per bucket"""
        label = "Note moyenne"
        window = self._window(time_frame)
        try:
            sessions = await self._sessions(window.start, window.end, rated_only=True)
            labels, data = aggregate_by_bucket(
                window, [(s.last_active_at, s.pharmacy_rating) for s in sessions], "mean"
            )
            return ChartData(label=label, labels=labels, data=[round(v, 1) for v in data])
        except Exception:
            logger.exception("Failed to compute pharmacy rating trends for %s", time_frame)
            return ChartData.zeros(label, bucket_labels(window))

    async def get_satisfaction_trends(self, time_frame: str = "month") -> ChartData:
        """Percent of ratings at 4 stars or more per bucket"""
        label = "Satisfaction (%)"
        window = self._window(time_frame)
        try:
            sessions = await self._sessions(window.start, window.end, rated_only=True)
            records = [
                (s.last_active_at, 100 if s.pharmacy_rating >= SATISFIED_THRESHOLD else 0)
                for s in sessions
            ]
            labels, data = aggregate_by_bucket(window, records, "mean")
            return ChartData(label=label, labels=labels, data=[round(v) for v in data])
        except Exception:
            logger.exception("Failed to compute satisfaction trends for %s", time_frame)
            return ChartData.zeros(label, bucket_labels(window))

    async def get_monthly_visitors(self, time_frame: str = "year") -> ChartData:
        """Distinct kiosks seen per bucket"""
        label = "Visiteurs"
        window = self._window(time_frame)
        try:
            sessions = await self._sessions(window.start, window.end)
            labels, data = aggregate_by_bucket(
                window, [(s.last_active_at, s.device_id) for s in sessions], "nunique"
            )
            return ChartData(label=label, labels=labels, data=data)
        except Exception:
            logger.exception("Failed to compute visitors for %s", time_frame)
            return ChartData.zeros(label, bucket_labels(window))

    async def get_star_rating_distribution(self, time_frame: str = "all") -> ChartData:
        label = "Nombre d'avis"
        window = self._window(time_frame)
        try:
            sessions = await self._sessions(window.start, window.end, rated_only=True)
            counts = rating_distribution(s.pharmacy_rating for s in sessions)
            return ChartData(label=label, labels=STAR_LABELS, data=counts)
        except Exception:
            logger.exception("Failed to compute star distribution for %s", time_frame)
            return ChartData.zeros(label, STAR_LABELS)

    async def get_feedback_by_time(self, time_frame: str = "month") -> ChartData:
        """Sessions with feedback per 2-hour slot of the local opening day"""
        label = "Avis"
        window = self._window(time_frame)
        try:
            sessions = await self._sessions(window.start, window.end)
            counts = [0] * len(TIME_SLOTS)
            for session in sessions:
                if not has_feedback(session):
                    continue
                hour = convert_to_cet(session.last_active_at).hour
                for index, (start, end) in enumerate(TIME_SLOTS):
                    if start <= hour < end:
                        counts[index] += 1
                        break
            return ChartData(label=label, labels=TIME_SLOT_LABELS, data=counts)
        except Exception:
            logger.exception("Failed to compute feedback by time for %s", time_frame)
            return ChartData.zeros(label, TIME_SLOT_LABELS)

    async def get_monthly_rating_data(self, year: Optional[int] = None) -> MultiSeriesChartData:
        """Monthly pharmacy and employee averages for one calendar year"""
        year = year or convert_to_cet(self.clock()).year
        window = TimeWindow(
            "year",
            convert_from_cet(datetime(year, 1, 1)),
            convert_from_cet(datetime(year + 1, 1, 1)),
            "month",
        )
        try:
            sessions = await self._sessions(window.start, window.end)
            _, pharmacy = aggregate_by_bucket(
                window,
                [(s.last_active_at, s.pharmacy_rating) for s in sessions if s.pharmacy_rating is not None],
            )
            _, employees = aggregate_by_bucket(
                window,
                [(s.last_active_at, e["rating"]) for s in sessions for e in s.employee_ratings or []],
            )
        except Exception:
            logger.exception("Failed to compute monthly ratings for %s", year)
            pharmacy = employees = [0.0] * len(MONTH_LABELS)
        return MultiSeriesChartData(
            labels=MONTH_LABELS,
            datasets=[
                ChartDataset(label="Pharmacie", data=[round(v, 1) for v in pharmacy]),
                ChartDataset(label="Employés", data=[round(v, 1) for v in employees]),
            ],
        )

    async def _position_titles(self) -> List[str]:
        try:
            async with self.session_factory() as db:
                return [position.title for position in await PositionRepository(db).list()]
        except Exception:
            logger.exception("Failed to load position titles")
            return []

    async def _ratings_by_role(
        self, start: Optional[datetime], end: Optional[datetime], position_titles: List[str]
    ) -> Dict[str, List[int]]:
        async with self.session_factory() as db:
            sessions = await FeedbackSessionRepository(db).get_with_employee_ratings(start, end)
            employee_ids = {e["employee_id"] for s in sessions for e in s.employee_ratings}
            user_ids = []
            for employee_id in employee_ids:
                try:
                    user_ids.append(UUID(employee_id))
                except ValueError:
                    continue
            users = await UserRepository(db).get_by_ids(user_ids)

        titles = {str(user.id): user.position_title or UNASSIGNED_ROLE for user in users}
        ratings = {title: [] for title in position_titles}
        for session in sessions:
            for entry in session.employee_ratings:
                title = titles.get(entry["employee_id"], UNASSIGNED_ROLE)
                ratings.setdefault(title, []).append(entry["rating"])
        return ratings

    async def get_role_distribution(self, time_frame: str = "year") -> RoleDistribution:
        window = self._window(time_frame)
        titles = await self._position_titles()
        try:
            ratings = await self._ratings_by_role(window.start, window.end, titles)
        except Exception:
            logger.exception("Failed to compute role distribution for %s", time_frame)
            ratings = {title: [] for title in titles}
        labels = sorted(ratings)
        return RoleDistribution(
            role_distribution=ChartData(
                label="Évaluations", labels=labels, data=[len(ratings[t]) for t in labels]
            ),
            satisfaction_by_role=ChartData(
                label="Note moyenne", labels=labels, data=[average(ratings[t]) for t in labels]
            ),
        )

    async def get_role_performance_data(self) -> ChartData:
        """Average employee rating per position over all time"""
        titles = await self._position_titles()
        try:
            ratings = await self._ratings_by_role(None, None, titles)
        except Exception:
            logger.exception("Failed to compute role performance")
            ratings = {title: [] for title in titles}
        labels = sorted(ratings)
        return ChartData(label="Note moyenne", labels=labels, data=[average(ratings[t]) for t in labels])

    async def calculate_pharmacy_rating_stats(self, time_frame: str = "month") -> PharmacyRatingStats:
        window = self._window(time_frame)
        try:
            current = [s.pharmacy_rating for s in await self._sessions(window.start, window.end, rated_only=True)]
            previous = [
                s.pharmacy_rating
                for s in await self._sessions(window.comparison_start, window.comparison_end, rated_only=True)
            ]
        except Exception:
            logger.exception("Failed to compute pharmacy rating stats for %s", time_frame)
            return PharmacyRatingStats()
        metrics = compute_metrics(current)
        return PharmacyRatingStats(
            average_rating=metrics["average_rating"],
            total_reviews=metrics["total_reviews"],
            satisfaction_rate=metrics["satisfaction_rate"],
            distribution=metrics["distribution"],
            comparison_to_last_period=point_change(
                metrics["average_rating"], average(previous), len(previous)
            ),
        )

    async def get_statistics_summary(self, time_frame: str = "month") -> StatisticsSummary:
        """
        KPI cards for a time frame compared with the window just before it.

        Deltas on rates are point differences; deltas on volumes are
        percent changes. Both are 0 when the earlier window is empty.
        """
        window = self._window(time_frame)
        try:
            current = summarize_window(await self._sessions(window.start, window.end))
            previous = summarize_window(
                await self._sessions(window.comparison_start, window.comparison_end)
            )
        except Exception:
            logger.exception("Failed to compute statistics summary for %s", time_frame)
            return StatisticsSummary(time_frame=window.time_frame)

        satisfaction = satisfaction_rate(current.ratings)
        employee_avg = average(current.employee_ratings)
        completion = completion_rate(current.completed, current.started)

        return StatisticsSummary(
            time_frame=window.time_frame,
            satisfaction_rate=satisfaction,
            satisfaction_change=point_change(
                satisfaction, satisfaction_rate(previous.ratings), len(previous.ratings)
            ),
            total_feedbacks=current.feedback_count,
            feedback_change=percent_change(current.feedback_count, previous.feedback_count),
            total_visitors=len(current.devices),
            visitors_change=percent_change(len(current.devices), len(previous.devices)),
            feedback_percentage=current.participation,
            feedback_percentage_change=point_change(
                current.participation, previous.participation, len(previous.devices)
            ),
            employee_avg_rating=employee_avg,
            employee_avg_change=point_change(
                employee_avg, average(previous.employee_ratings), len(previous.employee_ratings)
            ),
            employee_review_count=len(current.employee_ratings),
            employee_review_change=percent_change(
                len(current.employee_ratings), len(previous.employee_ratings)
            ),
            client_completion=ClientCompletionData(
                started=current.started,
                completed=current.completed,
                rate=completion,
                rate_change=point_change(
                    completion,
                    completion_rate(previous.completed, previous.started),
                    previous.started,
                ),
            ),
        )
