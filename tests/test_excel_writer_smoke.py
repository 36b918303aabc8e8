from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import cast

from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from movilidad_tool.excel_writer import ExcelLayout, series_to_frame, write_chart_xlsx
from movilidad_tool.metrics import STEP_COUNT, WALKING_SPEED
from movilidad_tool.model import MetricSeries


def test_write_chart_xlsx_rows_and_formatting(tmp_path: Path) -> None:
    """Una fila por intervalo: Métrica, Fecha / Hora, Valor, Unidad."""
    series = [
        MetricSeries(
            STEP_COUNT,
            values=(1500.0, 800.0),
            dates=(datetime(2025, 12, 15), datetime(2025, 12, 16)),
        ),
        MetricSeries(
            WALKING_SPEED, values=(1.25,), dates=(datetime(2025, 12, 15),)
        ),
    ]
    out = tmp_path / "nested" / "out.xlsx"
    write_chart_xlsx(series, out, ExcelLayout())

    wb = load_workbook(out)
    ws = cast(Worksheet, wb[ExcelLayout().sheet_name])

    headers = [cell.value for cell in ws[1]]
    assert headers == ["Métrica", "Fecha / Hora", "Valor", "Unidad"]
    assert ws.max_row == 4
    assert ws.cell(row=2, column=1).value == "Step Count"
    assert ws.cell(row=2, column=2).value == datetime(2025, 12, 15)
    assert ws.cell(row=2, column=3).value == 1500.0
    assert ws.cell(row=4, column=1).value == "Walking Speed"
    assert ws.cell(row=4, column=4).value == "m/s"

    assert ws.column_dimensions["A"].width == 28
    assert ws.cell(row=2, column=2).number_format == "dd/mm/yyyy hh:mm"
    assert ws.cell(row=2, column=3).number_format == "#,##0.00"
    assert ws.cell(row=1, column=1).font.bold is True


def test_write_chart_xlsx_empty_series(tmp_path: Path) -> None:
    out = tmp_path / "empty.xlsx"
    write_chart_xlsx([MetricSeries(STEP_COUNT)], out, ExcelLayout(sheet_name="X"))

    ws = cast(Worksheet, load_workbook(out)["X"])
    headers = [cell.value for cell in ws[1]]
    assert headers == ["Métrica", "Fecha / Hora", "Valor", "Unidad"]
    assert ws.max_row == 1


def test_series_to_frame_unknown_metric_keeps_id() -> None:
    df = series_to_frame(
        [MetricSeries("heart_rate", values=(70.0,), dates=(datetime(2025, 1, 1),))]
    )
    assert df.iloc[0]["metric"] == "heart_rate"
    assert df.iloc[0]["unit"] == ""
