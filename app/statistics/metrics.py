"""Satisfaction semantics and KPI arithmetic"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Dict
from app.db.models import FeedbackSession


class SatisfactionLevel(str, Enum):
    """Satisfaction levels based on star ratings"""
    VERY_DISSATISFIED = "VERY_DISSATISFIED"
    DISSATISFIED = "DISSATISFIED"
    NEUTRAL = "NEUTRAL"
    SATISFIED = "SATISFIED"
    VERY_SATISFIED = "VERY_SATISFIED"


# Rating to satisfaction level mapping
RATING_TO_SATISFACTION = {
    1: SatisfactionLevel.VERY_DISSATISFIED,
    2: SatisfactionLevel.DISSATISFIED,
    3: SatisfactionLevel.NEUTRAL,
    4: SatisfactionLevel.SATISFIED,
    5: SatisfactionLevel.VERY_SATISFIED,
}

SATISFIED_THRESHOLD = 4


def get_satisfaction_level(rating: int) -> SatisfactionLevel:
    """
    Convert star rating to satisfaction level.

    Args:
        rating: Star rating (1-5)

    Returns:
        SatisfactionLevel enum, NEUTRAL for out-of-range values
    """
    return RATING_TO_SATISFACTION.get(rating, SatisfactionLevel.NEUTRAL)


def matches_sentiment(rating: int, sentiment: str | None) -> bool:
    """positive is 4-5 stars, negative is 1-3 stars, anything else matches all"""
    if sentiment == "positive":
        return rating >= SATISFIED_THRESHOLD
    if sentiment == "negative":
        return rating < SATISFIED_THRESHOLD
    return True


def average(values: Iterable[float], digits: int = 1) -> float:
    values = list(values)
    if not values:
        return 0.0
    return round(sum(values) / len(values), digits)


def rating_distribution(ratings: Iterable[int]) -> List[int]:
    """Counts per star, index 0 holding the 1-star count"""
    ratings = list(ratings)
    return [ratings.count(star) for star in range(1, 6)]


def satisfaction_rate(ratings: Iterable[int]) -> int:
    """Percent of ratings at or above 4 stars, 0 without ratings"""
    ratings = list(ratings)
    if not ratings:
        return 0
    satisfied = sum(1 for r in ratings if r >= SATISFIED_THRESHOLD)
    return round(satisfied / len(ratings) * 100)


def percent_change(current: float, previous: float) -> int:
    """Relative change in percent; 0 when there is no baseline"""
    if not previous:
        return 0
    return round((current - previous) / previous * 100)


def point_change(current: float, previous: float, baseline_size: int) -> float:
    """Absolute difference, 0 when the baseline window had nothing to compare"""
    if baseline_size == 0:
        return 0.0
    return round(current - previous, 1)


def participation_rate(feedback_devices: int, total_devices: int) -> int:
    """Share of devices that left feedback, clamped to [0, 100]"""
    if total_devices <= 0:
        return 0
    rate = round(feedback_devices / total_devices * 100)
    return max(0, min(100, rate))


def completion_rate(completed: int, started: int) -> float:
    if started <= 0:
        return 0.0
    return round(completed / started * 100, 1)


def employee_score(avg_rating: float, review_count: int) -> float:
    """avg * ln(count + 1)"""
    return round(avg_rating * math.log(review_count + 1), 2)


def has_feedback(session: FeedbackSession) -> bool:
    return session.pharmacy_rating is not None or bool(session.employee_ratings)


def compute_metrics(ratings: List[int]) -> Dict:
    """
    Compute pharmacy rating metrics from a list of star ratings.

    Metrics computed:
    - average_rating: Mean of all ratings
    - total_reviews: Count of ratings
    - satisfaction_rate: Percent of ratings >= 4
    - distribution: Count per star, keyed "1".."5"
    """
    return {
        "average_rating": average(ratings),
        "total_reviews": len(ratings),
        "satisfaction_rate": satisfaction_rate(ratings),
        "distribution": {str(star): count for star, count in enumerate(rating_distribution(ratings), start=1)},
    }


@dataclass
class WindowMetrics:
    """Raw counters for one time window, compared against the previous window"""
    ratings: List[int] = field(default_factory=list)
    feedback_count: int = 0
    devices: set = field(default_factory=set)
    feedback_devices: set = field(default_factory=set)
    employee_ratings: List[int] = field(default_factory=list)
    started: int = 0
    completed: int = 0

    @property
    def participation(self) -> int:
        return participation_rate(len(self.feedback_devices), len(self.devices))


def summarize_window(sessions: Iterable[FeedbackSession]) -> WindowMetrics:
    metrics = WindowMetrics()
    for session in sessions:
        metrics.started += 1
        metrics.devices.add(session.device_id)
        if session.completed:
            metrics.completed += 1
        if session.pharmacy_rating is not None:
            metrics.ratings.append(session.pharmacy_rating)
        for entry in session.employee_ratings or []:
            metrics.employee_ratings.append(entry["rating"])
        if has_feedback(session):
            metrics.feedback_count += 1
            metrics.feedback_devices.add(session.device_id)
    return metrics
