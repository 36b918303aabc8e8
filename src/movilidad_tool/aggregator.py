"""Agregación por intervalos (hora/día) de cada métrica para un rango."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime

from movilidad_tool.context import HealthContext
from movilidad_tool.metrics import StatisticsOption, preferred_unit, statistics_option
from movilidad_tool.model import MetricSeries, RangeQuery, Statistics, TimeRange
from movilidad_tool.time_range import resolve

logger = logging.getLogger(__name__)


class StatisticsAggregator:
    """Runs one windowed aggregation per metric on a background pool."""

    def __init__(
        self,
        context: HealthContext,
        executor: Executor | None = None,
        max_workers: int = 3,
    ) -> None:
        self._store = context.health_store
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="statistics"
        )

    def fetch(
        self,
        metric: str,
        time_range: TimeRange,
        now: datetime | None = None,
    ) -> Future[MetricSeries]:
        """Submit the aggregation of ``metric`` for ``time_range``.

        Store failures (``AuthorizationError``, ``HealthStoreError``) are set
        as the future's exception. The future can be cancelled while queued.
        """
        query = resolve(time_range, now)
        return self._executor.submit(self.collect, metric, query)

    def fetch_all(
        self,
        metrics: Sequence[str],
        time_range: TimeRange,
        now: datetime | None = None,
    ) -> dict[str, Future[MetricSeries]]:
        """One independent future per metric, sharing a single "now"."""
        end = now if now is not None else datetime.now()
        return {metric: self.fetch(metric, time_range, end) for metric in metrics}

    def collect(self, metric: str, query: RangeQuery) -> MetricSeries:
        """Query the store and extract one value per non-empty bucket."""
        option = statistics_option(metric)
        collection = self._store.statistics_collection(
            metric,
            query.predicate,
            option,
            query.start_date,
            query.bucket_interval,
        )
        series = extract_series(metric, collection, option)
        logger.debug(
            "Aggregated %s over %s: %d of %d buckets with data",
            metric,
            query.time_range.value,
            len(series.values),
            len(collection),
        )
        return series

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)


def extract_series(
    metric: str,
    collection: Sequence[Statistics],
    option: StatisticsOption,
) -> MetricSeries:
    """Convert buckets to the preferred unit, skipping buckets without data."""
    unit = preferred_unit(metric)
    if unit is None:
        logger.warning("No preferred unit for %s; series left empty", metric)
        return MetricSeries(metric=metric)

    values: list[float] = []
    dates: list[datetime] = []
    for statistics in collection:
        quantity = (
            statistics.sum
            if option is StatisticsOption.CUMULATIVE_SUM
            else statistics.average
        )
        if quantity is None:
            continue
        values.append(unit.from_base(quantity))
        dates.append(statistics.start)
    return MetricSeries(metric=metric, values=tuple(values), dates=tuple(dates))
