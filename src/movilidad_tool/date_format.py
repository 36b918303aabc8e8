"""Etiquetas de rango de fechas y marcas del eje horizontal de los gráficos."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from movilidad_tool.dates import (
    get_beginning_of_date,
    get_dates_range,
    get_hours_range,
    get_last_month_start_date,
    items_at_indices_multiple_of,
)
from movilidad_tool.model import TimeRange

_MONTHS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
WEEKDAY_TITLES: tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _month_day(value: datetime) -> str:
    """``MMM d``"""
    return f"{_MONTHS[value.month - 1]} {value.day}"


def _month_day_year(value: datetime) -> str:
    """``MMM d, yyyy``"""
    return f"{_month_day(value)}, {value.year}"


def _day_year(value: datetime) -> str:
    """``d, yyyy``"""
    return f"{value.day}, {value.year}"


def _month_dash_day(value: datetime) -> str:
    """``MMM-d``"""
    return f"{_MONTHS[value.month - 1]}-{value.day}"


def _hour(value: datetime) -> str:
    return str(value.hour)


def _sunday_based_weekday(value: datetime) -> int:
    return (value.weekday() + 1) % 7


def _date_range_label(start: datetime, end: datetime) -> str:
    """Join start and end labels, collapsing the shared month or year."""
    same_month = (start.year, start.month) == (end.year, end.month)
    start_label = _month_day(start)
    end_label = _day_year(end) if same_month else _month_day_year(end)
    if start.year != end.year:
        start_label = _month_day_year(start)
    separator = "–" if same_month else " – "
    return f"{start_label}{separator}{end_label}"


def create_chart_weekly_date_range_label(last_date: datetime | None = None) -> str:
    """Label for the week ending at ``last_date``, e.g. "Jun 3–10, 2020"."""
    end = last_date if last_date is not None else datetime.now()
    return _date_range_label(end - timedelta(days=7), end)


def create_chart_monthly_date_range_label(last_date: datetime | None = None) -> str:
    """Label for the month ending at ``last_date``."""
    end = last_date if last_date is not None else datetime.now()
    return _date_range_label(end - relativedelta(months=1), end)


def create_chart_today_label(today: datetime | None = None) -> str:
    return _month_day_year(today if today is not None else datetime.now())


def create_chart_date_last_updated_label(last_updated: datetime) -> str:
    return f"last updated on {_month_day_year(last_updated)}"


def create_horizontal_axis_markers(
    last_date: datetime | None = None, use_weekdays: bool = True
) -> list[str]:
    """Return seven markers for the week ending at ``last_date``.

    With ``use_weekdays`` the weekday titles are rotated so the list starts
    at the weekday of ``last_date``; otherwise one ``MMM-d`` label per day
    of the seven days ending at ``last_date``.
    """
    end = last_date if last_date is not None else datetime.now()
    titles = list(WEEKDAY_TITLES)
    if use_weekdays:
        weekday = _sunday_based_weekday(end)
        return titles[weekday:] + titles[:weekday]

    start = end - timedelta(days=len(titles) - 1)
    return [_month_dash_day(day) for day in get_dates_range(start, end)]


def create_month_horizontal_axis_markers(dates: list[datetime]) -> list[str]:
    stride = TimeRange.MONTH.spec.axis_stride
    return [_month_dash_day(day) for day in items_at_indices_multiple_of(stride, dates)]


def create_day_horizontal_axis_markers(dates: list[datetime]) -> list[str]:
    stride = TimeRange.DAY.spec.axis_stride
    return [_hour(hour) for hour in items_at_indices_multiple_of(stride, dates)]


def get_horizontal_axis_markers(time_range: TimeRange, now: datetime) -> list[str]:
    """Axis tick labels for ``time_range`` ending at ``now``."""
    if time_range is TimeRange.DAY:
        hours = get_hours_range(get_beginning_of_date(now), now)
        return create_day_horizontal_axis_markers(hours)
    if time_range is TimeRange.WEEK:
        return create_horizontal_axis_markers(now)
    if time_range is TimeRange.MONTH:
        days = get_dates_range(get_last_month_start_date(now), now)
        return create_month_horizontal_axis_markers(days)
    raise ValueError(f"Unsupported time range: {time_range}")


def get_chart_date_range_label(time_range: TimeRange, now: datetime) -> str:
    """Header subtitle describing the span shown for ``time_range``."""
    if time_range is TimeRange.DAY:
        return create_chart_today_label(now)
    if time_range is TimeRange.WEEK:
        return create_chart_weekly_date_range_label(now)
    if time_range is TimeRange.MONTH:
        return create_chart_monthly_date_range_label(now)
    raise ValueError(f"Unsupported time range: {time_range}")
