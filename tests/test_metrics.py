from __future__ import annotations

import pytest

from movilidad_tool.metrics import (
    DISTANCE_WALKING_RUNNING,
    KILOMETERS_PER_HOUR,
    STEP_COUNT,
    WALKING_SPEED,
    StatisticsOption,
    data_type_name,
    preferred_unit,
    statistics_option,
    unit_description,
)


@pytest.mark.parametrize(
    ("metric", "option"),
    [
        (STEP_COUNT, StatisticsOption.CUMULATIVE_SUM),
        (DISTANCE_WALKING_RUNNING, StatisticsOption.CUMULATIVE_SUM),
        (WALKING_SPEED, StatisticsOption.DISCRETE_AVERAGE),
    ],
)
def test_statistics_option(metric: str, option: StatisticsOption) -> None:
    assert statistics_option(metric) is option


def test_unknown_metric_lookups() -> None:
    assert data_type_name("heart_rate") is None
    assert preferred_unit("heart_rate") is None
    assert statistics_option("heart_rate") is StatisticsOption.DISCRETE_AVERAGE


def test_unit_conversion_and_legend() -> None:
    assert KILOMETERS_PER_HOUR.from_base(1.0) == pytest.approx(3.6)
    assert unit_description(KILOMETERS_PER_HOUR) == "kilometers per hour"
