"""File-name classification — derive the export date and sales channel."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from channel_sales.models import ChannelCode
from channel_sales.utils import format_slashed_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    date: str
    channel_code: ChannelCode


@dataclass(frozen=True)
class FileNameRule:
    """One row of the classification table.

    *marker* must appear in the file name; *date_pattern* captures the date
    digits (YYMMDD when *two_digit_year*, else YYYYMMDD).
    """

    name: str
    marker: str
    date_pattern: re.Pattern[str]
    channel_code: ChannelCode
    two_digit_year: bool = False

    def match(self, file_name: str) -> str | None:
        """Return the ``YYYY/MM/DD`` date if this rule applies to *file_name*."""
        if self.marker not in file_name:
            return None
        m = self.date_pattern.search(file_name)
        if m is None:
            return None
        digits = m.group(1)
        if self.two_digit_year:
            year, month, day = f"20{digits[0:2]}", digits[2:4], digits[4:6]
        else:
            year, month, day = digits[0:4], digits[4:6], digits[6:8]
        return f"{year}/{month}/{day}"


_ANY_EIGHT_DIGITS_RE = re.compile(r"(\d{8})", re.ASCII)

# Order matters: names can carry several markers and the first hit wins.
RULES: tuple[FileNameRule, ...] = (
    FileNameRule("welfare", "복지_", re.compile(r"복지_(\d{6})", re.ASCII), "1003", two_digit_year=True),
    FileNameRule("shopping", "쇼핑_", re.compile(r"쇼핑_(\d{6})", re.ASCII), "1004", two_digit_year=True),
    FileNameRule("integrated_orders", "통합주문목록", re.compile(r"통합주문목록\.(\d{8})", re.ASCII), "1001"),
    FileNameRule("reserved_date_orders", "지정일_주문", re.compile(r"지정일_주문\.(\d{8})", re.ASCII), "1001"),
    FileNameRule("naverpay_dispatch", "네이버페이_전체주문발주발송관리", _ANY_EIGHT_DIGITS_RE, "1002"),
    FileNameRule("naverpay_confirmed", "네이버페이_구매확정내역", _ANY_EIGHT_DIGITS_RE, "1002"),
)

_CHANNEL_HINTS: tuple[tuple[str, ChannelCode], ...] = (
    ("복지", "1003"),
    ("쇼핑", "1004"),
    ("네이버페이", "1002"),
)
DEFAULT_CHANNEL_CODE: ChannelCode = "1001"


def guess_channel_code(file_name: str) -> ChannelCode:
    """Guess the channel from loose substrings when no rule matched."""
    for hint, code in _CHANNEL_HINTS:
        if hint in file_name:
            return code
    return DEFAULT_CHANNEL_CODE


def classify(file_name: str, *, today: date | None = None) -> Classification:
    """Classify *file_name* into ``(date, channel_code)``. Never fails.

    Unmatched names get the current local date (or *today*) and a guessed
    channel code.
    """
    for rule in RULES:
        matched_date = rule.match(file_name)
        if matched_date is not None:
            return Classification(date=matched_date, channel_code=rule.channel_code)

    logger.warning(
        "Could not parse a date from file name %r; using the current date",
        file_name,
        extra={"file_name": file_name},
    )
    fallback_date = format_slashed_date(today or date.today())
    return Classification(date=fallback_date, channel_code=guess_channel_code(file_name))
