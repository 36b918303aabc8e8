"""Persistencia SQLite: preferencias de la app y anclas por métrica."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from movilidad_tool.model import TimeRange

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS anchors (
    metric TEXT PRIMARY KEY,
    anchor INTEGER NOT NULL,
    updated_at TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class AppConfig:
    """Preferencias guardadas entre ejecuciones."""

    fit_root: str
    export_dir: str
    time_range: TimeRange = TimeRange.WEEK
    sync_url: str = ""

    def as_items(self) -> dict[str, str]:
        return {
            "fit_root": self.fit_root,
            "export_dir": self.export_dir,
            "time_range": self.time_range.value,
            "sync_url": self.sync_url,
        }

    @classmethod
    def from_items(cls, items: Mapping[str, str]) -> AppConfig:
        """Build a config from stored strings; unknown ranges become WEEK."""
        return cls(
            fit_root=items.get("fit_root", ""),
            export_dir=items.get("export_dir", ""),
            time_range=_parse_time_range(items.get("time_range", "")),
            sync_url=items.get("sync_url", ""),
        )


class SQLiteStore:
    """Single-file store for the app config and the sync anchors."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        # Anchors are written from the health store's delivery thread.
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def load_config(self) -> AppConfig:
        """Lee la configuracion; las claves ausentes toman su default."""
        with self._connect() as conn:
            stored = {
                row["key"]: row["value"]
                for row in conn.execute("SELECT key, value FROM app_config")
            }
        return AppConfig.from_items(stored)

    def save_config(self, config: AppConfig) -> None:
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                config.as_items().items(),
            )

    def load_anchor(self, metric: str) -> int | None:
        """Ultima ancla guardada para la metrica, o None."""
        with self._connect() as conn:
            found = conn.execute(
                "SELECT anchor FROM anchors WHERE metric = ?", (metric,)
            ).fetchone()
        return None if found is None else int(found["anchor"])

    def save_anchor(self, metric: str, anchor: int) -> None:
        """Guarda (o reemplaza) el ancla de la metrica."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO anchors(metric, anchor, updated_at) VALUES(?, ?, ?)
                ON CONFLICT(metric) DO UPDATE SET
                    anchor=excluded.anchor,
                    updated_at=excluded.updated_at
                """,
                (metric, anchor, datetime.now().isoformat(timespec="seconds")),
            )


def _parse_time_range(raw: str) -> TimeRange:
    try:
        return TimeRange(raw)
    except ValueError:
        return TimeRange.WEEK
