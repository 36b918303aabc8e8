from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from movilidad_tool.model import Sample, TimeRange, make_sample
from movilidad_tool.time_range import (
    create_predicate,
    get_interval,
    get_start_date,
    resolve,
)

NOW = datetime(2020, 6, 10, 10, 30)


def _sample_at(start: datetime) -> Sample:
    return make_sample("step_count", start, start + timedelta(minutes=15), 1)


@pytest.mark.parametrize(
    ("time_range", "expected"),
    [
        (TimeRange.DAY, datetime(2020, 6, 10)),
        (TimeRange.WEEK, datetime(2020, 6, 4)),
        (TimeRange.MONTH, datetime(2020, 5, 10)),
    ],
)
def test_get_start_date(time_range: TimeRange, expected: datetime) -> None:
    assert get_start_date(time_range, NOW) == expected


def test_get_interval() -> None:
    assert get_interval(TimeRange.DAY) == timedelta(hours=1)
    assert get_interval(TimeRange.WEEK) == timedelta(days=1)
    assert get_interval(TimeRange.MONTH) == timedelta(days=1)


def test_predicate_is_inclusive_window() -> None:
    predicate = create_predicate(TimeRange.WEEK, NOW)
    assert predicate.start == datetime(2020, 6, 4)
    assert predicate.end == NOW
    assert predicate.matches(_sample_at(datetime(2020, 6, 4)))
    assert predicate.matches(_sample_at(NOW))
    assert not predicate.matches(_sample_at(datetime(2020, 6, 3, 23, 59)))
    assert not predicate.matches(_sample_at(NOW + timedelta(seconds=1)))


def test_resolve_bundles_parameters() -> None:
    query = resolve(TimeRange.DAY, NOW)
    assert query.time_range is TimeRange.DAY
    assert query.start_date == datetime(2020, 6, 10)
    assert query.end_date == NOW
    assert query.predicate.start == query.start_date
    assert query.bucket_interval == timedelta(hours=1)
    assert query.axis_markers == ("0", "3", "6", "9")


def test_resolve_is_deterministic() -> None:
    for time_range in TimeRange:
        assert resolve(time_range, NOW) == resolve(time_range, NOW)


def test_resolve_week_has_seven_markers() -> None:
    assert len(resolve(TimeRange.WEEK, NOW).axis_markers) == 7
