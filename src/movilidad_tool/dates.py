"""Utilidades de fechas para ventanas de consulta y ejes de gráficos."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import TypeVar

from dateutil.relativedelta import relativedelta

T = TypeVar("T")


def get_beginning_of_date(now: datetime) -> datetime:
    """Return midnight of the day of ``now`` (tzinfo preserved)."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def get_last_week_start_date(now: datetime) -> datetime:
    """Start of the day six days before ``now``: a 7-day inclusive window."""
    return get_beginning_of_date(now - timedelta(days=6))


def get_last_month_start_date(now: datetime) -> datetime:
    """Start of the day one calendar month before ``now``."""
    return get_beginning_of_date(now - relativedelta(months=1))


def get_dates_range(start: datetime, end: datetime) -> list[datetime]:
    """Return ``start`` plus one-day steps until ``end`` is reached.

    Returns an empty list when ``start`` is after ``end``.
    """
    return _step_range(start, end, timedelta(days=1))


def get_hours_range(start: datetime, end: datetime) -> list[datetime]:
    """Return ``start`` plus one-hour steps until ``end`` is reached."""
    return _step_range(start, end, timedelta(hours=1))


def _step_range(start: datetime, end: datetime, step: timedelta) -> list[datetime]:
    if start > end:
        return []
    current = start
    out = [current]
    while current < end:
        current = current + step
        out.append(current)
    return out


def items_at_indices_multiple_of(number: int, items: Sequence[T]) -> list[T]:
    """Keep the items whose index is divisible by ``number``."""
    return [item for idx, item in enumerate(items) if idx % number == 0]
