"""channel-sales-merge — Merge per-channel sales exports into one aggregated sheet."""

__version__ = "0.1.0"

CHANNEL_CODES: tuple[str, ...] = ("1001", "1002", "1003", "1004")

ACCEPTED_EXTENSION = ".xlsx"

OUTPUT_SHEET_NAME = "AggregatedData"
DEFAULT_OUTPUT_NAME = "aggregated_data.xlsx"

OUTPUT_COLUMNS: list[str] = [
    "date",
    "channelCode",
    "category",
    "productName",
    "option",
    "quantity",
    "sales",
]
