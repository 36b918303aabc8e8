"""Almacén de datos de salud: autorización, estadísticas y consultas ancladas."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta

import pandas as pd

from movilidad_tool.metrics import StatisticsOption
from movilidad_tool.model import AnchoredBatch, Sample, SampleFilter, Statistics

logger = logging.getLogger(__name__)


class HealthStoreError(Exception):
    """A health store query failed."""


class AuthorizationError(HealthStoreError):
    """Access to a metric was not granted (or was revoked)."""


BatchHandler = Callable[
    ["AnchoredObjectQuery", AnchoredBatch | None, Exception | None], None
]


@dataclass(eq=False)
class AnchoredObjectQuery:
    """Long-running query delivering changes after ``anchor``.

    ``results_handler`` receives the initial batch, ``update_handler`` every
    later one. Handlers get either a batch or an exception, never both.
    """

    metric: str
    predicate: SampleFilter | None
    anchor: int | None
    results_handler: BatchHandler
    update_handler: BatchHandler | None = None


class HealthStore(ABC):
    """Interface consumed by the aggregator and the watcher."""

    @abstractmethod
    def request_authorization(self, metrics: Sequence[str]) -> bool:
        """Ask for read access; return True when every metric is granted."""

    @abstractmethod
    def statistics_collection(
        self,
        metric: str,
        predicate: SampleFilter,
        option: StatisticsOption,
        anchor_date: datetime,
        interval: timedelta,
    ) -> list[Statistics]:
        """Return one ``Statistics`` per interval from anchor_date to the end.

        Raises:
            AuthorizationError: If the metric is not authorized.
            HealthStoreError: If the store cannot answer.
        """

    @abstractmethod
    def execute(self, query: AnchoredObjectQuery) -> None:
        """Start a long-running anchored query."""

    @abstractmethod
    def stop(self, query: AnchoredObjectQuery) -> None:
        """Stop delivering updates to ``query``."""

    def close(self) -> None:
        """Release resources held by the store."""


@dataclass(frozen=True)
class _Change:
    seq: int
    deleted: bool
    sample: Sample


class LocalHealthStore(HealthStore):
    """In-process store keeping samples and a change log in memory.

    Anchors are sequence numbers of the change log. Batches are delivered on
    a single background thread, in change order.
    """

    def __init__(
        self,
        samples: Iterable[Sample] = (),
        denied: Iterable[str] = (),
        executor: Executor | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._samples: dict[str, Sample] = {}
        self._changes: list[_Change] = []
        self._queries: list[AnchoredObjectQuery] = []
        self._denied = set(denied)
        self._authorized: set[str] = set()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="health-store"
        )
        self._add(samples)

    # Authorization

    def request_authorization(self, metrics: Sequence[str]) -> bool:
        granted = [m for m in metrics if m not in self._denied]
        with self._lock:
            self._authorized.update(granted)
        if len(granted) != len(metrics):
            logger.warning(
                "Authorization denied for %s",
                sorted(set(metrics) - set(granted)),
            )
            return False
        return True

    def revoke_authorization(self, metric: str) -> None:
        with self._lock:
            self._authorized.discard(metric)
            self._denied.add(metric)

    def _check_authorized(self, metric: str) -> None:
        with self._lock:
            authorized = metric in self._authorized
        if not authorized:
            raise AuthorizationError(f"Not authorized to read {metric}")

    # Samples

    def save_samples(self, samples: Iterable[Sample]) -> int:
        """Add samples not already stored; return how many were added."""
        added = self._add(samples)
        if added:
            self._notify()
        return added

    def delete_samples(self, sample_ids: Iterable[str]) -> int:
        """Delete stored samples by id; return how many were removed."""
        removed = 0
        with self._lock:
            for sample_id in sample_ids:
                sample = self._samples.pop(sample_id, None)
                if sample is None:
                    continue
                self._changes.append(_Change(self._next_seq(), True, sample))
                removed += 1
        if removed:
            self._notify()
        return removed

    def _add(self, samples: Iterable[Sample]) -> int:
        added = 0
        with self._lock:
            for sample in samples:
                if sample.sample_id in self._samples:
                    continue
                self._samples[sample.sample_id] = sample
                self._changes.append(_Change(self._next_seq(), False, sample))
                added += 1
        return added

    def _next_seq(self) -> int:
        return self._changes[-1].seq + 1 if self._changes else 1

    # Statistics

    def statistics_collection(
        self,
        metric: str,
        predicate: SampleFilter,
        option: StatisticsOption,
        anchor_date: datetime,
        interval: timedelta,
    ) -> list[Statistics]:
        self._check_authorized(metric)
        if interval <= timedelta(0):
            raise HealthStoreError(f"Invalid statistics interval: {interval}")

        with self._lock:
            matching = [
                s
                for s in self._samples.values()
                if s.metric == metric and predicate.matches(s)
            ]
        end = predicate.end if predicate.end is not None else datetime.now()
        grouped = _bucket_frame(matching, anchor_date, interval)

        out: list[Statistics] = []
        bucket_start = anchor_date
        idx = 0
        while bucket_start <= end:
            bucket_end = bucket_start + interval
            if idx in grouped.index:
                row = grouped.loc[idx]
                out.append(
                    Statistics(
                        start=bucket_start,
                        end=bucket_end,
                        sum=float(row["sum"]),
                        average=float(row["mean"]),
                        count=int(row["count"]),
                    )
                )
            else:
                out.append(Statistics(start=bucket_start, end=bucket_end))
            bucket_start = bucket_end
            idx += 1
        logger.debug(
            "Statistics for %s (%s): %d buckets, %d samples",
            metric,
            option.value,
            len(out),
            len(matching),
        )
        return out

    # Anchored queries

    def execute(self, query: AnchoredObjectQuery) -> None:
        with self._lock:
            self._queries.append(query)
        self._executor.submit(self._deliver, query, query.results_handler, True)

    def stop(self, query: AnchoredObjectQuery) -> None:
        with self._lock:
            if query in self._queries:
                self._queries.remove(query)

    def close(self) -> None:
        """Finish pending deliveries, then drop every query."""
        self._executor.shutdown(wait=True)
        with self._lock:
            self._queries.clear()

    def _notify(self) -> None:
        with self._lock:
            queries = [q for q in self._queries if q.update_handler is not None]
        for query in queries:
            self._executor.submit(self._deliver, query, query.update_handler, False)

    def _deliver(
        self,
        query: AnchoredObjectQuery,
        handler: BatchHandler | None,
        initial: bool,
    ) -> None:
        if handler is None:
            return
        with self._lock:
            if query not in self._queries:
                return
        try:
            self._check_authorized(query.metric)
        except AuthorizationError as exc:
            _call_handler(handler, query, None, exc)
            return

        since = query.anchor or 0
        with self._lock:
            changes = [
                c
                for c in self._changes
                if c.seq > since
                and c.sample.metric == query.metric
                and (query.predicate is None or query.predicate.matches(c.sample))
            ]
            latest = self._changes[-1].seq if self._changes else 0
        if since > latest:
            logger.warning(
                "Anchor %d for %s is past the change log (%d); "
                "samples of a different export are skipped",
                since,
                query.metric,
                latest,
            )
        if not changes and not initial:
            return

        query.anchor = max(latest, since)
        batch = AnchoredBatch(
            metric=query.metric,
            added=tuple(c.sample for c in changes if not c.deleted),
            deleted=tuple(c.sample.sample_id for c in changes if c.deleted),
            anchor=query.anchor,
        )
        _call_handler(handler, query, batch, None)


def _call_handler(
    handler: BatchHandler,
    query: AnchoredObjectQuery,
    batch: AnchoredBatch | None,
    error: Exception | None,
) -> None:
    # Runs on the delivery thread; nothing collects the executor future.
    try:
        handler(query, batch, error)
    except Exception:
        logger.exception("Batch handler for %s failed; batch dropped", query.metric)


def _bucket_frame(
    samples: Sequence[Sample], anchor_date: datetime, interval: timedelta
) -> pd.DataFrame:
    """Group sample values by bucket index (sum, mean, count)."""
    if not samples:
        return pd.DataFrame(columns=["sum", "mean", "count"])
    df = pd.DataFrame(
        {
            "bucket": [(s.start - anchor_date) // interval for s in samples],
            "value": [s.value for s in samples],
        }
    )
    return df.groupby("bucket")["value"].agg(["sum", "mean", "count"])
