"""I/O helpers — read uploaded workbooks into file records, write JSON artifacts."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd

from channel_sales import ACCEPTED_EXTENSION
from channel_sales.classify import classify
from channel_sales.errors import ConversionError, EmptyFile, InvalidFileType, ParsingError
from channel_sales.models import FileRecord

logger = logging.getLogger(__name__)

# ── Sheet selection ──────────────────────────────────────────────

COMMON_SHEET_NAMES: list[str] = [
    "Sheet1",
    "Sheet2",
    "Sheet",
    "Excel",
    "발주발송관리",
    "구매확정내역",
]

# (file-name markers, preferred sheet); first marker hit decides.
_PREFERRED_SHEETS: list[tuple[tuple[str, ...], str]] = [
    (("복지_", "쇼핑_"), "Excel"),
    (("네이버페이_전체주문발주발송관리",), "발주발송관리"),
    (("네이버페이_구매확정내역",), "구매확정내역"),
]


def check_file_type(file_name: str) -> None:
    """Raise :class:`InvalidFileType` unless *file_name* has the accepted suffix.

    The suffix check is case-sensitive: ``report.XLSX`` is rejected.
    """
    if not file_name.endswith(ACCEPTED_EXTENSION):
        raise InvalidFileType(
            f"Only Excel ({ACCEPTED_EXTENSION}) files can be uploaded.", file_name
        )


def select_sheet(file_name: str, sheet_names: Sequence[str]) -> str | None:
    """Pick the sheet to read from a workbook, based on the file name.

    Returns ``None`` only when the workbook has no sheets.
    """
    if not sheet_names:
        return None

    for markers, preferred in _PREFERRED_SHEETS:
        if any(marker in file_name for marker in markers):
            return preferred if preferred in sheet_names else sheet_names[0]

    for name in COMMON_SHEET_NAMES:
        if name in sheet_names:
            return name
    return sheet_names[0]


# ── Loading ──────────────────────────────────────────────────────


def _frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    df = df.dropna(how="all")
    df.columns = pd.Index([str(c) for c in df.columns])
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def read_sheet_rows(data: bytes, file_name: str) -> list[dict[str, Any]]:
    """Parse workbook *data* and return the rows of the selected sheet.

    The first row is the header; fully blank rows are skipped and empty
    cells come back as ``None``.

    Raises
    ------
    ParsingError
        If the bytes are not a readable workbook, it has no sheets, or the
        selected sheet cannot be found.
    EmptyFile
        If the selected sheet has no data rows.
    """
    try:
        with pd.ExcelFile(BytesIO(data), engine="openpyxl") as workbook:
            sheet_names = [str(name) for name in workbook.sheet_names]
            if not sheet_names:
                raise ParsingError("The workbook has no sheets.", file_name)

            target = select_sheet(file_name, sheet_names)
            if target is None or target not in sheet_names:
                raise ParsingError("No usable sheet was found in the file.", file_name)

            logger.debug(
                "Reading sheet %r of %s", target, file_name, extra={"file_name": file_name}
            )
            rows = _frame_to_rows(workbook.parse(sheet_name=target))
    except ConversionError:
        raise
    except Exception as exc:
        raise ParsingError("Failed to parse the Excel file.", file_name) from exc

    if not rows:
        raise EmptyFile("The file has no data.", file_name)
    return rows


def load_file_record(file_name: str, data: bytes) -> FileRecord:
    """Validate, parse and classify one uploaded file."""
    check_file_type(file_name)
    rows = read_sheet_rows(data, file_name)
    classification = classify(file_name)
    return FileRecord(
        file_name=file_name,
        date=classification.date,
        channel_code=classification.channel_code,
        rows=tuple(rows),
    )


def load_file_record_from_path(path: Path) -> FileRecord:
    """Like :func:`load_file_record`, reading the bytes from *path*.

    The extension is checked before the file is opened.
    """
    path = Path(path)
    check_file_type(path.name)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParsingError(f"Could not read file: {exc}", path.name) from exc
    return load_file_record(path.name, data)


# ── Writing ──────────────────────────────────────────────────────


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
