"""Modelos tipados para muestras de movilidad, rangos y series de gráficos."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from hashlib import sha256


class TimeRange(Enum):
    """Display window selected by the user."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def spec(self) -> RangeSpec:
        """Bucket and axis parameters for this range."""
        return RANGE_SPECS[self]


@dataclass(frozen=True)
class RangeSpec:
    """Per-range query and axis parameters."""

    bucket_interval: timedelta
    axis_stride: int


RANGE_SPECS: dict[TimeRange, RangeSpec] = {
    TimeRange.DAY: RangeSpec(timedelta(hours=1), axis_stride=3),
    TimeRange.WEEK: RangeSpec(timedelta(days=1), axis_stride=1),
    TimeRange.MONTH: RangeSpec(timedelta(days=1), axis_stride=7),
}


@dataclass(frozen=True)
class Sample:
    """One quantity sample (value in the metric's base unit)."""

    sample_id: str
    metric: str
    start: datetime
    end: datetime
    value: float


def make_sample(metric: str, start: datetime, end: datetime, value: float) -> Sample:
    """Build a sample whose id is a stable hash of its content."""
    payload = json.dumps(
        [metric, start.isoformat(), end.isoformat(), float(value)], ensure_ascii=True
    )
    return Sample(
        sample_id=sha256(payload.encode("utf-8")).hexdigest(),
        metric=metric,
        start=start,
        end=end,
        value=float(value),
    )


@dataclass(frozen=True)
class SampleFilter:
    """Inclusive time filter on the sample start timestamp.

    An ``end`` of None leaves the window open.
    """

    start: datetime
    end: datetime | None

    def matches(self, sample: Sample) -> bool:
        if sample.start < self.start:
            return False
        return self.end is None or sample.start <= self.end


@dataclass(frozen=True)
class RangeQuery:
    """Query parameters computed for a time range."""

    time_range: TimeRange
    start_date: datetime
    end_date: datetime
    predicate: SampleFilter
    bucket_interval: timedelta
    axis_markers: tuple[str, ...]


@dataclass(frozen=True)
class Statistics:
    """One aggregation bucket; sum/average are None when it holds no data."""

    start: datetime
    end: datetime
    sum: float | None = None
    average: float | None = None
    count: int = 0


@dataclass(frozen=True)
class MetricSeries:
    """Values for one metric, one per non-empty bucket, in bucket order."""

    metric: str
    values: tuple[float, ...] = ()
    dates: tuple[datetime, ...] = ()


@dataclass(frozen=True)
class AnchoredBatch:
    """Changes delivered by an anchored query since the previous anchor."""

    metric: str
    added: tuple[Sample, ...]
    deleted: tuple[str, ...]
    anchor: int


@dataclass(frozen=True)
class DataSeries:
    """One line of a chart."""

    values: tuple[float, ...]
    title: str
    size: int = 2


@dataclass(frozen=True)
class ChartModel:
    """Display model consumed by the chart widget."""

    title: str
    subtitle: str
    axis_markers: tuple[str, ...]
    series: tuple[DataSeries, ...] = field(default_factory=tuple)
