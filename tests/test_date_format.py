"""Tests for chart header labels and axis markers."""

from __future__ import annotations

from datetime import datetime

import pytest

from movilidad_tool.date_format import (
    create_chart_date_last_updated_label,
    create_chart_monthly_date_range_label,
    create_chart_today_label,
    create_chart_weekly_date_range_label,
    create_horizontal_axis_markers,
    get_chart_date_range_label,
    get_horizontal_axis_markers,
)
from movilidad_tool.model import TimeRange


def test_weekly_label_same_month_collapses_end() -> None:
    assert create_chart_weekly_date_range_label(datetime(2020, 6, 10)) == (
        "Jun 3–10, 2020"
    )


def test_weekly_label_across_months_keeps_start_month() -> None:
    assert create_chart_weekly_date_range_label(datetime(2020, 7, 2)) == (
        "Jun 25 – Jul 2, 2020"
    )


def test_weekly_label_across_years_adds_start_year() -> None:
    assert create_chart_weekly_date_range_label(datetime(2021, 1, 3)) == (
        "Dec 27, 2020 – Jan 3, 2021"
    )


def test_monthly_label() -> None:
    assert create_chart_monthly_date_range_label(datetime(2020, 6, 10)) == (
        "May 10 – Jun 10, 2020"
    )


def test_today_and_last_updated_labels() -> None:
    assert create_chart_today_label(datetime(2020, 6, 10, 18, 0)) == "Jun 10, 2020"
    assert create_chart_date_last_updated_label(datetime(2020, 6, 10)) == (
        "last updated on Jun 10, 2020"
    )


def test_labels_are_idempotent() -> None:
    now = datetime(2020, 7, 2, 9, 0)
    for time_range in TimeRange:
        first = get_chart_date_range_label(time_range, now)
        assert get_chart_date_range_label(time_range, now) == first
        assert get_horizontal_axis_markers(time_range, now) == (
            get_horizontal_axis_markers(time_range, now)
        )


def test_chart_date_range_label_per_range() -> None:
    now = datetime(2020, 6, 10, 12, 0)
    assert get_chart_date_range_label(TimeRange.DAY, now) == "Jun 10, 2020"
    assert get_chart_date_range_label(TimeRange.WEEK, now) == "Jun 3–10, 2020"
    assert get_chart_date_range_label(TimeRange.MONTH, now) == "May 10 – Jun 10, 2020"


def test_weekday_markers_start_at_wednesday() -> None:
    # 2020-06-10 is a Wednesday.
    assert create_horizontal_axis_markers(datetime(2020, 6, 10)) == [
        "Wed",
        "Thu",
        "Fri",
        "Sat",
        "Sun",
        "Mon",
        "Tue",
    ]


@pytest.mark.parametrize(
    ("day", "first"),
    [(7, "Sun"), (8, "Mon"), (13, "Sat")],
)
def test_weekday_markers_wrap_around(day: int, first: str) -> None:
    markers = create_horizontal_axis_markers(datetime(2020, 6, day))
    assert markers[0] == first
    assert len(markers) == 7
    assert sorted(markers) == sorted(["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"])


def test_day_based_week_markers() -> None:
    markers = create_horizontal_axis_markers(datetime(2020, 6, 10), use_weekdays=False)
    assert markers == [
        "Jun-4",
        "Jun-5",
        "Jun-6",
        "Jun-7",
        "Jun-8",
        "Jun-9",
        "Jun-10",
    ]


def test_day_markers_every_third_hour() -> None:
    markers = get_horizontal_axis_markers(TimeRange.DAY, datetime(2020, 6, 10, 10, 30))
    assert markers == ["0", "3", "6", "9"]

    late = get_horizontal_axis_markers(TimeRange.DAY, datetime(2020, 6, 10, 23, 0))
    assert late == ["0", "3", "6", "9", "12", "15", "18", "21"]


def test_week_markers_always_seven() -> None:
    for day in range(7, 14):
        markers = get_horizontal_axis_markers(TimeRange.WEEK, datetime(2020, 6, day))
        assert len(markers) == 7


def test_month_markers_every_seventh_day() -> None:
    markers = get_horizontal_axis_markers(TimeRange.MONTH, datetime(2020, 6, 10))
    assert markers == ["May-10", "May-17", "May-24", "May-31", "Jun-7"]
