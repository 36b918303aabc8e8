"""CLI: gráficos de movilidad (Google Fit) en texto y exportación a Excel."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from movilidad_tool.aggregator import StatisticsAggregator
from movilidad_tool.context import HealthContext
from movilidad_tool.excel_writer import ExcelLayout, write_chart_xlsx
from movilidad_tool.health_store import LocalHealthStore
from movilidad_tool.metrics import MOBILITY_METRICS
from movilidad_tool.model import ChartModel, TimeRange
from movilidad_tool.presenter import MobilityChartController
from movilidad_tool.sources.google_fit import GoogleFitPaths, GoogleFitSource
from movilidad_tool.storage import SQLiteStore
from movilidad_tool.sync import HttpSync
from movilidad_tool.watcher import LiveUpdateWatcher

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Gráficos de movilidad (pasos, distancia, velocidad) de Fit."
    )
    parser.add_argument(
        "--base-dir",
        default=str(Path.home() / "proyectos" / "movilidad"),
        help="Directorio base (default: ~/proyectos/movilidad).",
    )
    parser.add_argument(
        "--range",
        dest="time_range",
        choices=[r.value for r in TimeRange],
        default=TimeRange.WEEK.value,
        help="Rango a graficar (default: week).",
    )
    parser.add_argument(
        "--sync-url",
        default="",
        help="Endpoint HTTP al que enviar las muestras nuevas (opcional).",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        help="Nivel de logging (default: info).",
    )
    return parser.parse_args()


def format_chart(chart: ChartModel) -> str:
    """Render a chart model as a few lines of text."""
    lines = [f"{chart.title} ({chart.subtitle})"]
    lines.append("  eje: " + " ".join(chart.axis_markers))
    for series in chart.series:
        values = ", ".join(f"{v:.2f}" for v in series.values)
        lines.append(f"  {series.title}: [{values}]")
    return "\n".join(lines)


def main() -> int:
    """Run the mobility chart CLI.

    Returns:
        Exit code (0 on success, 1 if access to the metrics was denied).
    """
    ns = parse_args()
    logging.basicConfig(level=getattr(logging, ns.log_level.upper(), logging.INFO))
    base = Path(ns.base_dir).expanduser().resolve()
    time_range = TimeRange(ns.time_range)

    fit = GoogleFitSource(GoogleFitPaths(root=base / "fit" / "Takeout" / "Fit"))
    fit.validate()
    fit_csvs = fit.daily_metrics_files()
    samples = fit.load_samples(fit_csvs)

    context = HealthContext(
        health_store=LocalHealthStore(samples),
        storage=SQLiteStore(base / "movilidad.sqlite3"),
    )
    if not context.health_store.request_authorization(MOBILITY_METRICS):
        context.close()
        return 1

    now = datetime.now()
    aggregator = StatisticsAggregator(context)
    controller = MobilityChartController(
        aggregator, MOBILITY_METRICS, time_range=time_range
    )
    controller.load_data(now)
    # Joining the pool also waits for every completion callback.
    aggregator.shutdown(wait=True)

    for metric in MOBILITY_METRICS:
        chart = controller.chart(metric)
        if chart is not None:
            print(format_chart(chart))

    if ns.sync_url:
        sync = HttpSync(ns.sync_url)
        LiveUpdateWatcher(context, sync).start(MOBILITY_METRICS, time_range, now)
        context.close()
        sync.close()
    else:
        context.close()

    out_dir = base / "salidas"
    ts = now.strftime("%Y-%m-%d_%H-%M-%S")
    out_path = out_dir / f"movilidad_{time_range.value}_{ts}.xlsx"
    write_chart_xlsx(
        [controller.series(m) for m in MOBILITY_METRICS], out_path, ExcelLayout()
    )

    print(f"OK: Fit daily CSV files: {len(fit_csvs)}")
    print(f"OK: Samples: {len(samples)}")
    print(f"OK: Output: {out_path}")
    return 0
