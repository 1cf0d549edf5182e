from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from channel_sales import io as io_mod
from channel_sales.errors import EmptyFile, InvalidFileType, ParsingError
from channel_sales.io import (
    check_file_type,
    load_file_record,
    load_file_record_from_path,
    read_sheet_rows,
    select_sheet,
    write_json,
)

XlsxFactory = Callable[..., bytes]

# ── File type ───────────────────────────────────────────────────


@pytest.mark.parametrize("file_name", ["data.csv", "data.xls", "data.XLSX", "data.xlsx.bak", "xlsx"])
def test_check_file_type_rejects_other_suffixes(file_name: str) -> None:
    with pytest.raises(InvalidFileType) as exc_info:
        check_file_type(file_name)

    assert exc_info.value.kind == "INVALID_FILE_TYPE"
    assert exc_info.value.file_name == file_name


def test_check_file_type_accepts_xlsx() -> None:
    check_file_type("복지_240331.xlsx")


# ── Sheet selection ─────────────────────────────────────────────


@pytest.mark.parametrize(
    ("file_name", "sheet_names", "expected"),
    [
        ("복지_240331.xlsx", ["Info", "Excel"], "Excel"),
        ("쇼핑_240331.xlsx", ["Info", "Excel"], "Excel"),
        ("쇼핑_240331.xlsx", ["Info", "Sheet1"], "Info"),
        ("네이버페이_전체주문발주발송관리_20240331.xlsx", ["Sheet1", "발주발송관리"], "발주발송관리"),
        ("네이버페이_구매확정내역_20240331.xlsx", ["Sheet1", "구매확정내역"], "구매확정내역"),
        ("네이버페이_구매확정내역_20240331.xlsx", ["요약", "Sheet1"], "요약"),
        ("통합주문목록.20240331.xlsx", ["요약", "Sheet2", "Sheet1"], "Sheet1"),
        ("orders.xlsx", ["요약", "Excel", "Sheet"], "Sheet"),
        ("orders.xlsx", ["요약", "구매확정내역"], "구매확정내역"),
        ("orders.xlsx", ["요약", "상세"], "요약"),
    ],
)
def test_select_sheet(file_name: str, sheet_names: list[str], expected: str) -> None:
    assert select_sheet(file_name, sheet_names) == expected


def test_select_sheet_returns_none_for_empty_workbook() -> None:
    assert select_sheet("orders.xlsx", []) is None


# ── Reading ─────────────────────────────────────────────────────


def test_read_sheet_rows_reads_selected_sheet(make_xlsx: XlsxFactory) -> None:
    data = make_xlsx(
        {
            "Info": [["note"], ["not data"]],
            "Excel": [["상품명", "단품명", "수량", "결제금액"], ["상품A", "옵션1", 2, 20000]],
        }
    )

    rows = read_sheet_rows(data, "복지_240331.xlsx")

    assert rows == [{"상품명": "상품A", "단품명": "옵션1", "수량": 2, "결제금액": 20000}]


def test_read_sheet_rows_blank_cells_become_none_and_blank_rows_are_skipped(
    make_xlsx: XlsxFactory,
) -> None:
    data = make_xlsx(
        {
            "Sheet1": [
                ["상품명", "옵션", "수량"],
                ["상품A", None, 1],
                [None, None, None],
                ["상품B", "옵션2", 3],
            ]
        }
    )

    rows = read_sheet_rows(data, "orders.xlsx")

    assert len(rows) == 2
    assert rows[0]["옵션"] is None
    assert rows[1] == {"상품명": "상품B", "옵션": "옵션2", "수량": 3}


def test_read_sheet_rows_header_only_raises_empty_file(make_xlsx: XlsxFactory) -> None:
    data = make_xlsx({"Sheet1": [["상품명", "수량"]]})

    with pytest.raises(EmptyFile, match="no data"):
        read_sheet_rows(data, "orders.xlsx")


def test_read_sheet_rows_wraps_codec_errors() -> None:
    with pytest.raises(ParsingError, match="Failed to parse") as exc_info:
        read_sheet_rows(b"definitely not a workbook", "orders.xlsx")

    assert exc_info.value.__cause__ is not None


def test_read_sheet_rows_without_sheets_raises_parsing_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class _EmptyWorkbook:
        sheet_names: list[str] = []

        def __init__(self, *args: object, **kwargs: object) -> None:
            del args, kwargs

        def __enter__(self) -> _EmptyWorkbook:
            return self

        def __exit__(self, *exc: object) -> None:
            return None

    monkeypatch.setattr(pd, "ExcelFile", _EmptyWorkbook)

    with pytest.raises(ParsingError, match="no sheets"):
        read_sheet_rows(b"x", "orders.xlsx")


def test_read_sheet_rows_missing_selected_sheet_raises_parsing_error(
    monkeypatch: pytest.MonkeyPatch, make_xlsx: XlsxFactory
) -> None:
    data = make_xlsx({"Sheet1": [["상품명"], ["상품A"]]})
    monkeypatch.setattr(io_mod, "select_sheet", lambda file_name, names: "Gone")

    with pytest.raises(ParsingError, match="No usable sheet"):
        read_sheet_rows(data, "orders.xlsx")


def test_load_file_record_classifies_and_keeps_rows(
    make_xlsx: XlsxFactory, welfare_rows: list[list[object]]
) -> None:
    data = make_xlsx({"Excel": welfare_rows})

    record = load_file_record("복지_240331.xlsx", data)

    assert record.file_name == "복지_240331.xlsx"
    assert record.date == "2024/03/31"
    assert record.channel_code == "1003"
    assert len(record.rows) == 3
    assert isinstance(record.rows, tuple)


def test_load_file_record_checks_type_before_parsing(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*args: object, **kwargs: object) -> None:
        raise AssertionError("workbook should not be opened")

    monkeypatch.setattr(pd, "ExcelFile", _fail)

    with pytest.raises(InvalidFileType):
        load_file_record("orders.csv", b"a,b\n1,2\n")


def test_load_file_record_from_path_checks_type_before_reading(tmp_path: Path) -> None:
    with pytest.raises(InvalidFileType):
        load_file_record_from_path(tmp_path / "missing.csv")


def test_load_file_record_from_path_unreadable_file_is_parsing_error(tmp_path: Path) -> None:
    with pytest.raises(ParsingError, match="Could not read"):
        load_file_record_from_path(tmp_path / "missing.xlsx")


def test_load_file_record_from_path_reads_bytes(
    tmp_path: Path, make_xlsx: XlsxFactory, welfare_rows: list[list[object]]
) -> None:
    path = tmp_path / "쇼핑_240331.xlsx"
    path.write_bytes(make_xlsx({"Excel": welfare_rows}))

    record = load_file_record_from_path(path)

    assert record.channel_code == "1004"
    assert record.rows[0]["상품명"] == "상품A"


# ── Writing ─────────────────────────────────────────────────────


def test_write_json_is_atomic_and_deterministic(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "artifact.json"
    payload = {
        "b": 1,
        "a": "2024-01-02T03:04:05+00:00",
        "name": "복지_240331.xlsx",
    }

    out = write_json(path, payload)

    assert out == path
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert '"name": "복지_240331.xlsx"' in text
    assert text.index('"a"') < text.index('"b"') < text.index('"name"')
    assert not path.with_suffix(path.suffix + ".tmp").exists()


def test_write_json_raises_on_unknown_type(tmp_path: Path) -> None:
    class Unknown:
        pass

    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "artifact.json", {"x": Unknown()})
