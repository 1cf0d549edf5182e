"""Conversion report persistence."""

from __future__ import annotations

from pathlib import Path

from channel_sales.io import write_json
from channel_sales.models import BatchResult


def write_conversion_report(out_dir: Path, batch: BatchResult) -> Path:
    """Write ``conversion_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "conversion_report.json", batch.to_dict())
