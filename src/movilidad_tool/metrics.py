"""Catálogo de métricas de movilidad: nombres, unidades y agregación."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

STEP_COUNT = "step_count"
DISTANCE_WALKING_RUNNING = "distance_walking_running"
WALKING_SPEED = "walking_speed"

MOBILITY_METRICS: tuple[str, ...] = (
    WALKING_SPEED,
    STEP_COUNT,
    DISTANCE_WALKING_RUNNING,
)


class StatisticsOption(Enum):
    """How samples in one bucket are combined."""

    CUMULATIVE_SUM = "sum"
    DISCRETE_AVERAGE = "average"


@dataclass(frozen=True)
class Unit:
    """Display unit; ``scale`` converts from the metric's base unit."""

    symbol: str
    scale: float = 1.0

    def from_base(self, value: float) -> float:
        return value * self.scale


COUNT = Unit("count")
METER = Unit("m")
KILOMETER = Unit("km", scale=0.001)
METERS_PER_SECOND = Unit("m/s")
KILOMETERS_PER_HOUR = Unit("km/h", scale=3.6)

_DATA_TYPE_NAMES: dict[str, str] = {
    STEP_COUNT: "Step Count",
    DISTANCE_WALKING_RUNNING: "Distance Walking + Running",
    WALKING_SPEED: "Walking Speed",
}

_STATISTICS_OPTIONS: dict[str, StatisticsOption] = {
    STEP_COUNT: StatisticsOption.CUMULATIVE_SUM,
    DISTANCE_WALKING_RUNNING: StatisticsOption.CUMULATIVE_SUM,
    WALKING_SPEED: StatisticsOption.DISCRETE_AVERAGE,
}

_PREFERRED_UNITS: dict[str, Unit] = {
    STEP_COUNT: COUNT,
    DISTANCE_WALKING_RUNNING: METER,
    WALKING_SPEED: METERS_PER_SECOND,
}

_UNIT_DESCRIPTIONS: dict[str, str] = {
    COUNT.symbol: "steps",
    METER.symbol: "meters",
    KILOMETER.symbol: "kilometers",
    METERS_PER_SECOND.symbol: "meters per second",
    KILOMETERS_PER_HOUR.symbol: "kilometers per hour",
}


def data_type_name(metric: str) -> str | None:
    """Return the human name of a metric, or None if it is not tracked."""
    return _DATA_TYPE_NAMES.get(metric)


def statistics_option(metric: str) -> StatisticsOption:
    """Return the fixed aggregation operator for a metric.

    Unknown metrics are treated as discrete values.
    """
    return _STATISTICS_OPTIONS.get(metric, StatisticsOption.DISCRETE_AVERAGE)


def preferred_unit(metric: str) -> Unit | None:
    """Return the display unit of a metric, or None if it is not tracked."""
    return _PREFERRED_UNITS.get(metric)


def unit_description(unit: Unit) -> str | None:
    return _UNIT_DESCRIPTIONS.get(unit.symbol)
