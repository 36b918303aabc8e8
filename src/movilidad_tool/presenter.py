"""Modelo de visualización de gráficos y controlador de la pantalla."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from datetime import datetime

from movilidad_tool.aggregator import StatisticsAggregator
from movilidad_tool.context import Dispatch, call_now
from movilidad_tool.date_format import (
    get_chart_date_range_label,
    get_horizontal_axis_markers,
)
from movilidad_tool.metrics import data_type_name, preferred_unit, unit_description
from movilidad_tool.model import ChartModel, DataSeries, MetricSeries, TimeRange

logger = logging.getLogger(__name__)


class ChartPresenter:
    """Builds the chart display model for one metric."""

    def present(
        self,
        series: MetricSeries,
        axis_markers: Sequence[str],
        date_range_label: str,
        previous: ChartModel | None = None,
    ) -> ChartModel:
        """Return title, subtitle, axis and data series for ``series``.

        When the metric has no unit description the data series of
        ``previous`` is kept; the header and axis still update.
        """
        title = data_type_name(series.metric) or "Data"
        unit = preferred_unit(series.metric)
        legend = unit_description(unit) if unit is not None else None
        if legend is None:
            logger.warning(
                "No unit for %s; keeping previous data series", series.metric
            )
            kept = previous.series if previous is not None else ()
            return ChartModel(title, date_range_label, tuple(axis_markers), kept)

        return ChartModel(
            title=title,
            subtitle=date_range_label,
            axis_markers=tuple(axis_markers),
            series=(DataSeries(values=tuple(series.values), title=legend),),
        )


class MobilityChartController:
    """Owns the selected range and one chart per metric.

    Every reload bumps a per-metric generation; completions carrying an
    older generation are discarded. State is only written inside
    ``dispatch`` callbacks.
    """

    def __init__(
        self,
        aggregator: StatisticsAggregator,
        metrics: Sequence[str],
        presenter: ChartPresenter | None = None,
        dispatch: Dispatch = call_now,
        time_range: TimeRange = TimeRange.WEEK,
    ) -> None:
        self._aggregator = aggregator
        self._presenter = presenter or ChartPresenter()
        self._dispatch = dispatch
        self.metrics = tuple(metrics)
        self.time_range = time_range
        self._series = {m: MetricSeries(metric=m) for m in self.metrics}
        self._charts: dict[str, ChartModel] = {}
        self._generations = {m: 0 for m in self.metrics}
        self._listeners: list[Callable[[str, ChartModel], None]] = []

    def add_listener(self, listener: Callable[[str, ChartModel], None]) -> None:
        self._listeners.append(listener)

    def series(self, metric: str) -> MetricSeries:
        return self._series[metric]

    def chart(self, metric: str) -> ChartModel | None:
        return self._charts.get(metric)

    def select_time_range(
        self, time_range: TimeRange, now: datetime | None = None
    ) -> dict[str, Future[MetricSeries]]:
        self.time_range = time_range
        return self.load_data(now)

    def load_data(
        self, now: datetime | None = None
    ) -> dict[str, Future[MetricSeries]]:
        """Fetch every metric for the current range; return the futures."""
        end = now if now is not None else datetime.now()
        time_range = self.time_range
        axis_markers = get_horizontal_axis_markers(time_range, end)
        label = get_chart_date_range_label(time_range, end)

        futures = self._aggregator.fetch_all(self.metrics, time_range, end)
        for metric, future in futures.items():
            self._generations[metric] += 1
            generation = self._generations[metric]
            future.add_done_callback(
                self._completion(metric, generation, axis_markers, label)
            )
        return futures

    def _completion(
        self,
        metric: str,
        generation: int,
        axis_markers: list[str],
        label: str,
    ) -> Callable[[Future[MetricSeries]], None]:
        def done(future: Future[MetricSeries]) -> None:
            self._dispatch(
                lambda: self._apply(metric, generation, axis_markers, label, future)
            )

        return done

    def _apply(
        self,
        metric: str,
        generation: int,
        axis_markers: list[str],
        label: str,
        future: Future[MetricSeries],
    ) -> None:
        if generation != self._generations[metric]:
            logger.debug("Discarding stale result for %s", metric)
            return
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Statistics query for %s failed: %s", metric, error)
            return

        series = future.result()
        self._series[metric] = series
        chart = self._presenter.present(
            series, axis_markers, label, previous=self._charts.get(metric)
        )
        self._charts[metric] = chart
        for listener in self._listeners:
            listener(metric, chart)
