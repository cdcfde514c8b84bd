"""Named dashboard time frames mapped to concrete windows"""
from dataclasses import dataclass
from datetime import datetime, timedelta
import pandas as pd

TIME_FRAMES = ["month", "30days", "quarter", "semester", "year", "lastYear", "all"]
DEFAULT_TIME_FRAME = "year"
ALL_TIME_START = datetime(2020, 1, 1)

MONTHS_BY_FRAME = {"quarter": 3, "semester": 6, "year": 12}


@dataclass(frozen=True)
class TimeWindow:
    """
    A half-open [start, end) range in naive UTC plus the calendar unit
    used to bucket it. The comparison window is the range of equal span
    ending where this one starts.
    """
    time_frame: str
    start: datetime
    end: datetime
    bucket: str  # day | month | year

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    @property
    def comparison_start(self) -> datetime:
        return self.start - self.span

    @property
    def comparison_end(self) -> datetime:
        return self.start


def months_after(moment: datetime, months: int) -> datetime:
    """Same wall-clock time `months` calendar months later"""
    return (pd.Timestamp(moment) + pd.DateOffset(months=months)).to_pydatetime()


def months_before(moment: datetime, months: int) -> datetime:
    """Same wall-clock time `months` calendar months earlier"""
    return (pd.Timestamp(moment) - pd.DateOffset(months=months)).to_pydatetime()


def resolve_time_frame(time_frame: str, now: datetime | None = None) -> TimeWindow:
    """
    Map a named time frame to a window ending now.

    Raises:
        ValueError: Unknown time frame
    """
    now = now or datetime.utcnow()
    if time_frame in ("month", "30days"):
        return TimeWindow(time_frame, now - timedelta(days=30), now, "day")
    if time_frame in MONTHS_BY_FRAME:
        return TimeWindow(time_frame, months_before(now, MONTHS_BY_FRAME[time_frame]), now, "month")
    if time_frame == "lastYear":
        return TimeWindow(time_frame, months_before(now, 24), months_before(now, 12), "month")
    if time_frame == "all":
        return TimeWindow(time_frame, ALL_TIME_START, now, "year")
    raise ValueError(f"Unknown time frame: {time_frame}")
