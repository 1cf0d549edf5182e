"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Literal

from channel_sales import CHANNEL_CODES

ChannelCode = Literal["1001", "1002", "1003", "1004"]
Number = int | float


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _check_channel_code(value: Any) -> None:
    if value not in CHANNEL_CODES:
        raise ValueError(f"channel_code must be one of {', '.join(CHANNEL_CODES)}")


@dataclass(frozen=True)
class FileRecord:
    """One uploaded file: its classified date/channel and its raw rows."""

    file_name: str
    date: str
    channel_code: ChannelCode
    rows: tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self) -> None:
        _check_channel_code(self.channel_code)
        if not isinstance(self.rows, tuple):
            object.__setattr__(self, "rows", tuple(self.rows))


@dataclass(frozen=True)
class ResolvedRow:
    product_name: str = ""
    option: str = ""
    quantity: Number = 0
    sales: Number = 0


@dataclass(frozen=True)
class AggregatedRecord:
    """Totals for one product+option pair within one source file."""

    date: str
    channel_code: ChannelCode
    product_name: str
    option: str
    quantity: Number = 0
    sales: Number = 0
    category: str = ""

    def __post_init__(self) -> None:
        _check_channel_code(self.channel_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "channelCode": self.channel_code,
            "category": self.category,
            "productName": self.product_name,
            "option": self.option,
            "quantity": self.quantity,
            "sales": self.sales,
        }


@dataclass
class FileFailure:
    file_name: str
    kind: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"file_name": self.file_name, "kind": self.kind, "message": self.message}


@dataclass
class BatchResult:
    """Outcome of converting a batch of files.

    Contract invariant: ``files_in == len(files_ok) + len(failures)``.
    ``ok_indices`` holds the input positions of ``files_ok`` when known.
    """

    records: list[AggregatedRecord] = field(default_factory=list)
    files_in: int = 0
    files_ok: list[str] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    ok_indices: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.files_in = _to_non_negative_int(self.files_in, "files_in")
        self.files_ok = _to_string_list(self.files_ok, "files_ok")
        if self.files_in != len(self.files_ok) + len(self.failures):
            raise ValueError("files_in must equal files_ok + failures")
        if self.ok_indices and len(self.ok_indices) != len(self.files_ok):
            raise ValueError("ok_indices must line up with files_ok")

    @property
    def has_data(self) -> bool:
        return bool(self.files_ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_in": self.files_in,
            "files_ok": list(self.files_ok),
            "failures": [f.to_dict() for f in self.failures],
            "records_out": len(self.records),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "channel-sales-merge"
    version: str = ""
    created_at_utc: str = ""
    output_path: str = ""
    files_in: int = 0
    files_ok: int = 0
    records_out: int = 0
    sha256: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.files_in = _to_non_negative_int(self.files_in, "files_in")
        self.files_ok = _to_non_negative_int(self.files_ok, "files_ok")
        self.records_out = _to_non_negative_int(self.records_out, "records_out")
        if self.files_ok > self.files_in:
            raise ValueError("files_ok must be <= files_in")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "created_at_utc": self.created_at_utc,
            "output_path": self.output_path,
            "files_in": self.files_in,
            "files_ok": self.files_ok,
            "records_out": self.records_out,
            "sha256": dict(self.sha256),
        }
