"""Tests for CLI entrypoints."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from movilidad_tool import cli
from movilidad_tool.model import ChartModel, DataSeries, Sample, TimeRange


def _write_fit_export(base: Path) -> None:
    metrics_dir = base / "fit" / "Takeout" / "Fit" / "Métricas de actividad diaria"
    metrics_dir.mkdir(parents=True)
    day = (datetime.now() - timedelta(days=1)).date()
    (metrics_dir / f"{day.isoformat()}.csv").write_text(
        "Hora de inicio,Hora de finalización,Recuento de pasos,Distancia (m)\n"
        "08:00:00.000,08:15:00.000,250,180\n"
        "09:00:00.000,09:15:00.000,100,70\n",
        encoding="utf-8",
    )


def test_parse_args_custom_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "sys.argv", ["prog", "--base-dir", "/tmp/base", "--range", "month"]
    )
    ns = cli.parse_args()
    assert ns.base_dir == "/tmp/base"
    assert TimeRange(ns.time_range) is TimeRange.MONTH
    assert ns.sync_url == ""


def test_parse_args_rejects_unknown_range(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "--range", "year"])
    with pytest.raises(SystemExit):
        cli.parse_args()


def test_format_chart() -> None:
    chart = ChartModel(
        title="Step Count",
        subtitle="Jun 3–10, 2020",
        axis_markers=("Wed", "Thu"),
        series=(DataSeries(values=(1.0, 2.5), title="steps"),),
    )
    assert cli.format_chart(chart) == (
        "Step Count (Jun 3–10, 2020)\n  eje: Wed Thu\n  steps: [1.00, 2.50]"
    )


def test_main_happy_path(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_fit_export(tmp_path)
    monkeypatch.setattr("sys.argv", ["prog", "--base-dir", str(tmp_path)])

    assert cli.main() == 0

    out = capsys.readouterr().out
    assert "Step Count (" in out
    assert "steps: [350.00]" in out
    assert "OK: Fit daily CSV files: 1" in out
    assert "OK: Samples: 4" in out
    outputs = list((tmp_path / "salidas").glob("movilidad_week_*.xlsx"))
    assert len(outputs) == 1
    assert (tmp_path / "movilidad.sqlite3").exists()


def test_main_pushes_samples_when_sync_url_given(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    pushed: list[tuple[str, int]] = []

    class _Sync:
        def __init__(self, url: str) -> None:
            self.url = url
            self.closed = False

        def push(
            self, metric: str, added: Sequence[Sample], deleted: Sequence[str]
        ) -> None:
            pushed.append((metric, len(added)))

        def close(self) -> None:
            self.closed = True

    _write_fit_export(tmp_path)
    monkeypatch.setattr(cli, "HttpSync", _Sync)
    monkeypatch.setattr(
        "sys.argv",
        ["prog", "--base-dir", str(tmp_path), "--sync-url", "http://sync.test"],
    )

    assert cli.main() == 0
    assert sorted(pushed) == [("distance_walking_running", 2), ("step_count", 2)]


def test_main_missing_export(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "--base-dir", str(tmp_path)])
    with pytest.raises(FileNotFoundError):
        cli.main()
