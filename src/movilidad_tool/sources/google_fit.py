"""Lectura de muestras de movilidad desde Google Fit Takeout."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import cast

import pandas as pd
from dateutil import parser, tz

from movilidad_tool.metrics import (
    DISTANCE_WALKING_RUNNING,
    STEP_COUNT,
    WALKING_SPEED,
)
from movilidad_tool.model import Sample, make_sample
from movilidad_tool.sources.base import SampleSource, SourcePaths

logger = logging.getLogger(__name__)

_LOCAL_TZ = tz.tzlocal()
_DEFAULT_SLOT = timedelta(minutes=15)

_METRIC_PATTERNS: dict[str, list[str]] = {
    STEP_COUNT: [r"recuento de pasos", r"\bpasos\b", r"step count", r"\bstep"],
    DISTANCE_WALKING_RUNNING: [r"\bdistancia\b", r"\bdistance"],
    WALKING_SPEED: [r"velocidad media", r"average speed"],
}
_START_PATTERNS = [r"hora de inicio", r"start time"]
_END_PATTERNS = [r"hora de finalizaci", r"end time"]
_DAILY_DIR = "Métricas de actividad diaria"


@dataclass(frozen=True)
class GoogleFitPaths(SourcePaths):
    """Paths for Google Fit Takeout/Fit directory."""

    # root: .../Takeout/Fit


class GoogleFitSource(SampleSource):
    """Google Fit Takeout reader (15-minute activity slots)."""

    def validate(self) -> None:
        """Validate the path of the files."""
        self._paths.require()

    def daily_metrics_files(self) -> list[Path]:
        """Return per-day CSV files for daily activity metrics."""
        metrics_dir = self._paths.require(_DAILY_DIR)
        files = sorted(
            p
            for p in metrics_dir.glob("*.csv")
            if p.stem.lower() != _DAILY_DIR.lower()
        )
        if files:
            return files
        raise FileNotFoundError(str(metrics_dir))

    def read_all(self) -> list[Sample]:
        return self.load_samples(self.daily_metrics_files())

    def load_samples(self, csv_paths: list[Path]) -> list[Sample]:
        """Load one sample per metric and time slot from per-day CSVs.

        Files without a date in their name or without a start-time column
        are skipped.
        """
        out: list[Sample] = []
        for csv_path in csv_paths:
            file_date = _date_from_filename(csv_path)
            if not file_date:
                continue
            df = pd.read_csv(csv_path)
            samples = _samples_from_daily_file(df, file_date)
            if not samples:
                logger.debug("No samples in %s", csv_path.name)
            out.extend(samples)
        out.sort(key=lambda s: (s.start, s.metric))
        return out


def _find_col(columns: list[str], patterns: list[str]) -> str | None:
    for pat in patterns:
        rx = re.compile(pat, re.IGNORECASE)
        for c in columns:
            if rx.search(c):
                return c
    return None


def _samples_from_daily_file(df: pd.DataFrame, file_date: date) -> list[Sample]:
    if df.empty:
        return []

    df = df.rename(columns={c: c.strip() for c in df.columns})
    cols = list(df.columns)
    start_col = _find_col(cols, _START_PATTERNS)
    if not start_col:
        logger.warning("No start time column for %s; file skipped", file_date)
        return []
    end_col = _find_col(cols, _END_PATTERNS)
    metric_cols = {
        metric: col
        for metric, patterns in _METRIC_PATTERNS.items()
        if (col := _find_col(cols, patterns))
    }

    out: list[Sample] = []
    for _, row in df.iterrows():
        start = _parse_slot_time(file_date, row[start_col])
        if start is None:
            continue
        end = _parse_slot_time(file_date, row[end_col]) if end_col else None
        if end is None or end < start:
            end = start + _DEFAULT_SLOT
        for metric, col in metric_cols.items():
            value = pd.to_numeric(row[col], errors="coerce")
            if pd.isna(value):
                continue
            out.append(make_sample(metric, start, end, float(value)))
    return out


def _parse_slot_time(file_date: date, raw: object) -> datetime | None:
    """Combine the file date with a slot time like ``00:15:00.000-03:00``.

    Offsets are converted to local time; the result is naive.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = parser.isoparse(f"{file_date.isoformat()}T{raw.strip()}")
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(_LOCAL_TZ).replace(tzinfo=None)
    return parsed


def _date_from_filename(path: Path) -> date | None:
    match = re.match(r"(\d{4}-\d{2}-\d{2})", path.stem)
    if not match:
        return None
    parsed = pd.to_datetime(match.group(1), errors="coerce")
    if pd.isna(parsed):
        return None
    return cast(date, parsed.date())
