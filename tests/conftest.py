from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from movilidad_tool.context import HealthContext
from movilidad_tool.health_store import LocalHealthStore
from movilidad_tool.model import Sample, make_sample
from movilidad_tool.storage import SQLiteStore


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(  # type: ignore[override]
        self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any
    ) -> Future[Any]:
        future: Future[Any] = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(Executor):
    """Holds submitted work until the test runs it."""

    def __init__(self) -> None:
        self.pending: list[tuple[Future[Any], Callable[..., Any], Any, Any]] = []

    def submit(  # type: ignore[override]
        self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any
    ) -> Future[Any]:
        future: Future[Any] = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run(self, index: int = 0) -> None:
        future, fn, args, kwargs = self.pending.pop(index)
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)


def slot(metric: str, start: datetime, value: float) -> Sample:
    return make_sample(metric, start, start + timedelta(minutes=15), value)


@pytest.fixture
def storage(tmp_path: Path) -> SQLiteStore:
    return SQLiteStore(tmp_path / "app.sqlite3")


@pytest.fixture
def health_store() -> LocalHealthStore:
    return LocalHealthStore(executor=InlineExecutor())


@pytest.fixture
def context(health_store: LocalHealthStore, storage: SQLiteStore) -> HealthContext:
    return HealthContext(health_store=health_store, storage=storage)
