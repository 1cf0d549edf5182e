"""Aggregation pipeline — per-file grouping and the sequential batch flow."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from channel_sales import OUTPUT_COLUMNS
from channel_sales.errors import ConversionError
from channel_sales.io import load_file_record, load_file_record_from_path
from channel_sales.models import (
    AggregatedRecord,
    BatchResult,
    FileFailure,
    FileRecord,
    ResolvedRow,
)
from channel_sales.resolver import normalize_number, resolve

SourceFile = Path | tuple[str, bytes]
ProgressCallback = Callable[[float, str | None], None]

# Share of the progress bar spent on reading files; the rest covers aggregation.
READ_PROGRESS_SHARE = 90.0
AGGREGATE_PROGRESS = 95.0

_GROUP_KEYS = ["product_name", "option"]


# ── Aggregation ─────────────────────────────────────────────────


def _resolve_rows(record: FileRecord, log: logging.Logger) -> list[ResolvedRow]:
    resolved: list[ResolvedRow] = []
    for row_index, row in enumerate(record.rows):
        try:
            resolved.append(resolve(row, record.channel_code, record.file_name))
        except Exception:
            log.warning(
                "Skipping unreadable row %d in %s",
                row_index,
                record.file_name,
                exc_info=True,
                extra={"file_name": record.file_name, "row_index": row_index},
            )
    return resolved


def aggregate_file(
    record: FileRecord, *, logger: logging.Logger | None = None
) -> list[AggregatedRecord]:
    """Group one file's rows by (product, option) and sum quantity + sales.

    Groups come out in first-seen order.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    resolved = _resolve_rows(record, log)
    if not resolved:
        return []

    df = pd.DataFrame([asdict(r) for r in resolved])
    grouped = df.groupby(_GROUP_KEYS, sort=False, as_index=False).agg(
        quantity=("quantity", "sum"), sales=("sales", "sum")
    )
    return [
        AggregatedRecord(
            date=record.date,
            channel_code=record.channel_code,
            product_name=product_name,
            option=option,
            quantity=normalize_number(float(quantity)),
            sales=normalize_number(float(sales)),
        )
        for product_name, option, quantity, sales in grouped.itertuples(
            index=False, name=None
        )
    ]


def aggregate(
    file_records: Iterable[FileRecord], *, logger: logging.Logger | None = None
) -> list[AggregatedRecord]:
    """Aggregate each file on its own and concatenate the results.

    Identical keys from different files are never merged.  A file that fails
    is logged and skipped.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    result: list[AggregatedRecord] = []
    for record in file_records:
        try:
            result.extend(aggregate_file(record, logger=log))
        except Exception:
            log.error(
                "Failed to aggregate %s; skipping file",
                record.file_name,
                exc_info=True,
                extra={"file_name": record.file_name},
            )
    return result


def records_to_frame(records: Sequence[AggregatedRecord]) -> pd.DataFrame:
    """Return *records* as a DataFrame in output-column order."""
    if not records:
        return pd.DataFrame(columns=OUTPUT_COLUMNS)
    return pd.DataFrame([r.to_dict() for r in records], columns=OUTPUT_COLUMNS)


# ── Batch flow ──────────────────────────────────────────────────


def _source_name(source: SourceFile) -> str:
    if isinstance(source, tuple):
        return source[0]
    return Path(source).name


def _load_source(source: SourceFile) -> FileRecord:
    if isinstance(source, tuple):
        file_name, data = source
        return load_file_record(file_name, data)
    return load_file_record_from_path(Path(source))


def run_batch(
    files: Sequence[SourceFile],
    *,
    progress: ProgressCallback | None = None,
    logger: logging.Logger | None = None,
) -> BatchResult:
    """Load, classify and aggregate *files* strictly in the given order.

    Per-file errors are collected in ``BatchResult.failures``; the batch goes
    on with the remaining files.
    """
    log = logger if logger is not None else logging.getLogger(__name__)

    def _report(percent: float, file_name: str | None) -> None:
        if progress is not None:
            progress(percent, file_name)

    total = len(files)
    loaded: list[FileRecord] = []
    ok_indices: list[int] = []
    failures: list[FileFailure] = []

    for index, source in enumerate(files):
        file_name = _source_name(source)
        _report(index / total * READ_PROGRESS_SHARE, file_name)
        try:
            record = _load_source(source)
        except ConversionError as exc:
            log.info(
                "Rejected %s: %s",
                file_name,
                exc.message,
                extra={"file_name": file_name, "kind": exc.kind},
            )
            failures.append(FileFailure(file_name, exc.kind, exc.message))
            continue
        except Exception as exc:
            log.error(
                "Unexpected error while reading %s",
                file_name,
                exc_info=True,
                extra={"file_name": file_name},
            )
            failures.append(
                FileFailure(file_name, "UNKNOWN", f"Unexpected error while processing the file: {exc}")
            )
            continue

        log.info(
            "Parsed %s: %d rows (channel %s, date %s)",
            file_name,
            len(record.rows),
            record.channel_code,
            record.date,
            extra={"file_name": file_name},
        )
        loaded.append(record)
        ok_indices.append(index)
        _report((index + 1) / total * READ_PROGRESS_SHARE, file_name)

    _report(AGGREGATE_PROGRESS, None)
    records = aggregate(loaded, logger=log) if loaded else []
    if loaded:
        log.info("Aggregated %d files into %d records", len(loaded), len(records))
    else:
        log.warning("No data to process")
    _report(100.0, None)

    return BatchResult(
        records=records,
        files_in=total,
        files_ok=[r.file_name for r in loaded],
        failures=failures,
        ok_indices=ok_indices,
    )
