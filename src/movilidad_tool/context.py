"""Contexto explícito: almacén de salud, persistencia de anclas y hilo de UI."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from movilidad_tool.health_store import HealthStore
from movilidad_tool.storage import SQLiteStore

Dispatch = Callable[[Callable[[], None]], None]


def call_now(fn: Callable[[], None]) -> None:
    """Dispatcher that runs the callback on the calling thread."""
    fn()


@dataclass
class HealthContext:
    """Collaborators shared by the aggregator and the watcher of one screen."""

    health_store: HealthStore
    storage: SQLiteStore

    def close(self) -> None:
        self.health_store.close()
