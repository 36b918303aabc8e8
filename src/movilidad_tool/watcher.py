"""Suscripción a cambios incrementales por métrica y envío al servidor."""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from collections.abc import Callable, Sequence
from datetime import datetime
from enum import Enum

from movilidad_tool.context import Dispatch, HealthContext, call_now
from movilidad_tool.health_store import AnchoredObjectQuery
from movilidad_tool.model import AnchoredBatch, TimeRange
from movilidad_tool.sync import NetworkSync
from movilidad_tool.time_range import create_predicate

logger = logging.getLogger(__name__)


class WatcherState(Enum):
    IDLE = "idle"
    SUBSCRIBED = "subscribed"


class LiveUpdateWatcher:
    """Keeps one anchored query per metric and forwards every batch.

    Batches arrive on the store's background thread. The anchor is saved and
    the batch pushed there; only ``on_batch`` is handed to ``dispatch`` (the
    UI loop).
    """

    def __init__(
        self,
        context: HealthContext,
        sync: NetworkSync,
        dispatch: Dispatch = call_now,
        on_batch: Callable[[AnchoredBatch], None] | None = None,
    ) -> None:
        self._store = context.health_store
        self._storage = context.storage
        self._sync = sync
        self._dispatch = dispatch
        self._on_batch = on_batch
        self._queries: dict[str, AnchoredObjectQuery] = {}

    @property
    def sync(self) -> NetworkSync:
        return self._sync

    def set_sync(self, sync: NetworkSync) -> None:
        """Send later batches to ``sync``; subscriptions are kept."""
        self._sync = sync

    def state(self, metric: str) -> WatcherState:
        if metric in self._queries:
            return WatcherState.SUBSCRIBED
        return WatcherState.IDLE

    def start(
        self,
        metrics: Sequence[str],
        time_range: TimeRange,
        now: datetime | None = None,
    ) -> bool:
        """Subscribe every idle metric; return False if access was denied."""
        if not self._store.request_authorization(metrics):
            logger.warning("Live updates not started: authorization denied")
            return False

        end = now if now is not None else datetime.now()
        # Same start as the aggregation window, open end for later samples.
        predicate = dataclasses.replace(create_predicate(time_range, end), end=None)
        for metric in metrics:
            if metric in self._queries:
                continue
            query = AnchoredObjectQuery(
                metric=metric,
                predicate=predicate,
                anchor=self._storage.load_anchor(metric),
                results_handler=self._handle_batch,
                update_handler=self._handle_batch,
            )
            self._queries[metric] = query
            self._store.execute(query)
            logger.info("Subscribed to live updates for %s", metric)
        return True

    def stop(self) -> None:
        for metric, query in list(self._queries.items()):
            self._store.stop(query)
            del self._queries[metric]
            logger.info("Unsubscribed from live updates for %s", metric)

    def _handle_batch(
        self,
        query: AnchoredObjectQuery,
        batch: AnchoredBatch | None,
        error: Exception | None,
    ) -> None:
        if error is not None or batch is None:
            logger.error(
                "Anchored query for %s failed: %s", query.metric, error
            )
            return

        logger.info(
            "Anchored query for %s returned %d added, %d deleted",
            batch.metric,
            len(batch.added),
            len(batch.deleted),
        )
        try:
            self._storage.save_anchor(batch.metric, batch.anchor)
        except sqlite3.Error as exc:
            logger.error("Could not save anchor for %s: %s", batch.metric, exc)
            return
        if not batch.added and not batch.deleted:
            return
        self._sync.push(batch.metric, batch.added, batch.deleted)
        if self._on_batch is not None:
            callback = self._on_batch
            self._dispatch(lambda: callback(batch))
