"""Calendar bucketing of timestamped values for chart series"""
from datetime import datetime, timedelta
from typing import Iterable, Tuple
import pandas as pd
from app.statistics.time_frames import TimeWindow
from app.utils.timezone import convert_to_cet

MONTH_LABELS = ["Jan", "Fév", "Mar", "Avr", "Mai", "Juin", "Juil", "Août", "Sep", "Oct", "Nov", "Déc"]
PERIOD_FREQ = {"day": "D", "month": "M", "year": "Y"}


def to_period(timestamp: datetime, bucket: str) -> pd.Period:
    """Local calendar period a UTC timestamp falls in"""
    return pd.Period(convert_to_cet(timestamp), freq=PERIOD_FREQ[bucket])


def bucket_label(period: pd.Period, bucket: str) -> str:
    if bucket == "day":
        return period.strftime("%d/%m")
    if bucket == "month":
        return f"{MONTH_LABELS[period.month - 1]} {period.year}"
    return str(period.year)


def bucket_labels(window: TimeWindow) -> list[str]:
    """Every calendar bucket the window touches, oldest first"""
    freq = PERIOD_FREQ[window.bucket]
    # end is exclusive
    last_moment = window.end - timedelta(microseconds=1)
    periods = pd.period_range(
        start=to_period(window.start, window.bucket),
        end=to_period(last_moment, window.bucket),
        freq=freq,
    )
    return [bucket_label(period, window.bucket) for period in periods]


def aggregate_by_bucket(
    window: TimeWindow,
    records: Iterable[Tuple[datetime, object]],
    how: str = "mean",
) -> Tuple[list[str], list[float]]:
    """
    Reduce (timestamp, value) records per bucket.

    Args:
        window: Window whose buckets make up the label set
        records: Pairs of UTC timestamp and value
        how: pandas aggregation name (mean, count, sum, nunique)

    Returns:
        Parallel labels and data lists; empty buckets hold 0
    """
    labels = bucket_labels(window)
    records = list(records)
    if not records:
        return labels, [0.0] * len(labels)

    frame = pd.DataFrame({
        "bucket": [bucket_label(to_period(ts, window.bucket), window.bucket) for ts, _ in records],
        "value": [value for _, value in records],
    })
    reduced = frame.groupby("bucket")["value"].agg(how).reindex(labels, fill_value=0)
    return labels, [float(value) for value in reduced]
