"""Timezone utilities for converting between UTC and the pharmacy's local time"""
from datetime import datetime
import pytz

# European timezone (handles CET/CEST automatically)
EUROPE_TZ = pytz.timezone('Europe/Paris')


def convert_to_cet(dt: datetime | None) -> datetime | None:
    """
    Convert UTC naive datetime to CET (Europe/Paris) for display and bucketing.

    Args:
        dt: Naive datetime assumed to be in UTC, or None

    Returns:
        Naive datetime in CET timezone, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Assume it's UTC and convert to Europe/Paris
        utc_dt = pytz.utc.localize(dt)
        cet_dt = utc_dt.astimezone(EUROPE_TZ)
        # Return as naive CET datetime
        return cet_dt.replace(tzinfo=None)
    return dt.astimezone(EUROPE_TZ).replace(tzinfo=None)


def convert_from_cet(dt: datetime) -> datetime:
    """Convert a naive Europe/Paris wall-clock time to naive UTC for queries."""
    local_dt = EUROPE_TZ.localize(dt)
    return local_dt.astimezone(pytz.utc).replace(tzinfo=None)


def format_date(dt: datetime | None) -> str:
    """Format a UTC datetime as a French local date (dd/mm/YYYY)."""
    local_dt = convert_to_cet(dt)
    return local_dt.strftime("%d/%m/%Y") if local_dt else ""


def to_naive_utc(dt: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)
