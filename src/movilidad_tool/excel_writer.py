"""Exportación a Excel de las series mostradas en los gráficos."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import get_column_letter

from movilidad_tool.metrics import data_type_name, preferred_unit
from movilidad_tool.model import MetricSeries


@dataclass(frozen=True)
class ColumnFormat:
    field: str
    header: str
    width: int
    number_format: str | None = None


COLUMNS: tuple[ColumnFormat, ...] = (
    ColumnFormat("metric", "Métrica", 28),
    ColumnFormat("bucket", "Fecha / Hora", 18, "dd/mm/yyyy hh:mm"),
    ColumnFormat("value", "Valor", 12, "#,##0.00"),
    ColumnFormat("unit", "Unidad", 8),
)


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet name and column layout of the export."""

    sheet_name: str = "Movilidad"
    columns: tuple[ColumnFormat, ...] = COLUMNS


def series_to_frame(series: Sequence[MetricSeries]) -> pd.DataFrame:
    """One row per bucket: metric name, bucket start, value and unit."""
    rows: list[dict[str, object]] = []
    for item in series:
        unit = preferred_unit(item.metric)
        name = data_type_name(item.metric) or item.metric
        symbol = unit.symbol if unit is not None else ""
        rows.extend(
            {"metric": name, "bucket": bucket, "value": value, "unit": symbol}
            for bucket, value in zip(item.dates, item.values, strict=False)
        )
    return pd.DataFrame(rows, columns=[c.field for c in COLUMNS])


def write_chart_xlsx(
    series: Sequence[MetricSeries], out_path: Path, layout: ExcelLayout
) -> None:
    """Write the given series to a formatted Excel file.

    Args:
        series: Series currently displayed, one per metric.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    frame = series_to_frame(series)
    if not frame.empty:
        buckets = pd.to_datetime(frame["bucket"])
        if buckets.dt.tz is not None:
            buckets = buckets.dt.tz_localize(None)
        frame["bucket"] = buckets
    frame = frame.rename(columns={c.field: c.header for c in layout.columns})

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        _format_sheet(writer.book[layout.sheet_name], layout.columns)


def _format_sheet(ws: Any, columns: Sequence[ColumnFormat]) -> None:
    """Bold centered header, thin borders, widths and number formats."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_align = Alignment(horizontal="center", vertical="center", wrap_text=True)
    body_align = Alignment(horizontal="center", vertical="center")

    positions = {str(cell.value): cell.column for cell in ws[1]}
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = header_align
        cell.border = border

    for column in columns:
        idx = positions.get(column.header)
        if idx is None:
            continue
        ws.column_dimensions[get_column_letter(idx)].width = column.width
        for (cell,) in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
            cell.alignment = body_align
            cell.border = border
            if column.number_format:
                cell.number_format = column.number_format
