"""Resolución de un rango (día/semana/mes) a parámetros de consulta."""

from __future__ import annotations

from datetime import datetime, timedelta

from movilidad_tool.date_format import get_horizontal_axis_markers
from movilidad_tool.dates import (
    get_beginning_of_date,
    get_last_month_start_date,
    get_last_week_start_date,
)
from movilidad_tool.model import RangeQuery, SampleFilter, TimeRange


def get_start_date(time_range: TimeRange, now: datetime) -> datetime:
    """First instant of the query window for ``time_range``."""
    if time_range is TimeRange.DAY:
        return get_beginning_of_date(now)
    if time_range is TimeRange.WEEK:
        return get_last_week_start_date(now)
    if time_range is TimeRange.MONTH:
        return get_last_month_start_date(now)
    raise ValueError(f"Unsupported time range: {time_range}")


def create_predicate(time_range: TimeRange, now: datetime) -> SampleFilter:
    """Filter selecting samples in ``[start_date, now]``."""
    return SampleFilter(start=get_start_date(time_range, now), end=now)


def get_interval(time_range: TimeRange) -> timedelta:
    return time_range.spec.bucket_interval


def resolve(time_range: TimeRange, now: datetime | None = None) -> RangeQuery:
    """Compute every query parameter for ``time_range`` at ``now``.

    Args:
        time_range: Selected display window.
        now: Reference instant; defaults to the current local time.

    Returns:
        Start/end dates, predicate, bucket interval and axis markers.
    """
    end = now if now is not None else datetime.now()
    predicate = create_predicate(time_range, end)
    return RangeQuery(
        time_range=time_range,
        start_date=predicate.start,
        end_date=end,
        predicate=predicate,
        bucket_interval=get_interval(time_range),
        axis_markers=tuple(get_horizontal_axis_markers(time_range, end)),
    )
