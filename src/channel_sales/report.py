"""Excel output writer — produces the aggregated_data.xlsx download."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from channel_sales import DEFAULT_OUTPUT_NAME, OUTPUT_SHEET_NAME
from channel_sales.models import AggregatedRecord
from channel_sales.pipeline import records_to_frame

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

INT_FMT = '#,##0'
AMOUNT_FMT = '#,##0.##'

# Column-name → format mapping for the output sheet
_COL_FORMATS: dict[str, str] = {
    "quantity": INT_FMT,
    "sales": AMOUNT_FMT,
}

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_COLUMN_WIDTH = 40
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, _MAX_COLUMN_WIDTH)


def _apply_number_formats(ws: Worksheet, col_names: list[str]) -> None:
    """Apply number formats to data columns (rows 2+) by column name."""
    if ws.max_row < 2:
        return

    for c_idx, name in enumerate(col_names, 1):
        fmt = _COL_FORMATS.get(name)
        if fmt:
            for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
                for cell in row:
                    cell.number_format = fmt


def _excel_value(val: Any) -> Any:
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val

    if isinstance(val, pd.Timestamp):
        dt = val.to_pydatetime()
        return dt.replace(tzinfo=None) if dt.tzinfo else dt

    if isinstance(val, datetime) and val.tzinfo:
        return val.replace(tzinfo=None)

    return val


def _set_cell(ws: Worksheet, row: int, column: int, val: Any) -> None:
    """Write *val* unchanged; formula-like text stays a quoted string cell."""
    cell = ws.cell(row=row, column=column, value=_excel_value(val))
    if isinstance(cell.value, str) and cell.value.lstrip()[:1] in _EXCEL_FORMULA_PREFIXES:
        cell.data_type = "s"
        cell.quotePrefix = True


def _frame_to_sheet(ws: Worksheet, df: pd.DataFrame) -> None:
    col_names = list(df.columns)
    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            _set_cell(ws, r_idx, c_idx, val)
    _style_header(ws, len(col_names))
    _apply_number_formats(ws, col_names)
    ws.freeze_panes = "A2"
    if len(df) > 0:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)


# ── Public API ───────────────────────────────────────────────────


def write_aggregated_report(
    path: Path, records: Sequence[AggregatedRecord]
) -> Path:
    """Write *records* to an ``.xlsx`` with a single ``AggregatedData`` sheet.

    If *path* is a directory the file is named ``aggregated_data.xlsx``.
    Returns the written path.
    """
    path = Path(path)
    if path.is_dir():
        path = path / DEFAULT_OUTPUT_NAME
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = OUTPUT_SHEET_NAME
    _frame_to_sheet(ws, records_to_frame(records))

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
