from __future__ import annotations

from collections.abc import Callable
from io import BytesIO

import pytest
from openpyxl import Workbook

XlsxFactory = Callable[..., bytes]


def build_xlsx(sheets: dict[str, list[list[object]]]) -> bytes:
    """Return workbook bytes with one sheet per entry, rows appended in order."""
    wb = Workbook()
    default = wb.active
    if default is not None:
        wb.remove(default)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_xlsx() -> XlsxFactory:
    return build_xlsx


@pytest.fixture
def welfare_rows() -> list[list[object]]:
    return [
        ["상품명", "단품명", "수량", "결제금액"],
        ["상품A", "옵션1", 2, 20000],
        ["상품A", "옵션1", 3, 30000],
        ["상품B", "옵션2", 1, 15000],
    ]
