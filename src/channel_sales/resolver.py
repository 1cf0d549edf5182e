"""Field resolution — map one raw export row onto the common schema.

Each channel names its columns differently and folds shipping fees into
sales in its own way.  A :class:`FieldStrategy` captures one such layout and
:data:`STRATEGIES` picks the layout for a ``(channel_code, file_name)`` pair.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Real
from typing import Any

from channel_sales.models import Number, ResolvedRow

# ── Coercion helpers ────────────────────────────────────────────

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def normalize_number(value: float) -> Number:
    if math.isfinite(value) and value == int(value):
        return int(value)
    return value


def to_number(value: Any) -> Number:
    """Coerce a cell to a number; anything not numeric-looking becomes 0."""
    if _is_blank(value) or isinstance(value, bool):
        return 0
    if isinstance(value, Real):
        number = float(value)
        if math.isnan(number):
            return 0
        if isinstance(value, int):
            return int(value)
        return normalize_number(number)
    if isinstance(value, str):
        token = value.strip()
        if _NUMERIC_RE.fullmatch(token):
            return normalize_number(float(token))
    return 0


def to_text(value: Any) -> str:
    """Coerce a cell to text; blank cells become ``""``."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def first_present(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the value of the first key in *keys* holding a non-blank value."""
    for key in keys:
        value = row.get(key)
        if not _is_blank(value):
            return value
    return None


# ── Strategies ──────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldStrategy:
    """Column layout of one export format.

    ``product_keys``/``option_keys``/``quantity_keys`` list candidate column
    names, first present wins.  Sales is the sum of ``sales_addends``; each
    addend is itself a candidate tuple.
    """

    name: str
    product_keys: tuple[str, ...]
    option_keys: tuple[str, ...]
    quantity_keys: tuple[str, ...]
    sales_addends: tuple[tuple[str, ...], ...]

    def resolve(self, row: Mapping[str, Any]) -> ResolvedRow:
        sales: Number = 0
        for candidates in self.sales_addends:
            sales += to_number(first_present(row, candidates))
        return ResolvedRow(
            product_name=to_text(first_present(row, self.product_keys)),
            option=to_text(first_present(row, self.option_keys)),
            quantity=to_number(first_present(row, self.quantity_keys)),
            sales=sales,
        )


MALL_STRATEGY = FieldStrategy(
    name="mall",
    product_keys=("상품명",),
    option_keys=("단품명",),
    quantity_keys=("수량",),
    sales_addends=(("결제금액",),),
)

INTEGRATED_ORDERS_STRATEGY = FieldStrategy(
    name="integrated_orders",
    product_keys=("상품명",),
    option_keys=("옵션",),
    quantity_keys=("수량",),
    sales_addends=(("상품 결제금액",), ("배송비",)),
)

RESERVED_DATE_ORDERS_STRATEGY = FieldStrategy(
    name="reserved_date_orders",
    product_keys=("상품명",),
    option_keys=("옵션",),
    quantity_keys=("수량",),
    sales_addends=(("상품 결제금액",),),
)

NAVERPAY_STRATEGY = FieldStrategy(
    name="naverpay",
    product_keys=("상품명",),
    option_keys=("옵션정보",),
    quantity_keys=("수량",),
    sales_addends=(("최종 상품별 총 주문금액",), ("배송비 합계",)),
)

FALLBACK_STRATEGY = FieldStrategy(
    name="fallback",
    product_keys=("상품명", "product_name", "productName"),
    option_keys=("옵션", "단품명", "옵션정보", "option"),
    quantity_keys=("수량", "quantity", "qty"),
    sales_addends=(("결제금액", "상품 결제금액", "최종 상품별 총 주문금액", "sales", "price"),),
)

# (channel codes, required file-name substring or None, strategy); first hit wins.
STRATEGIES: tuple[tuple[frozenset[str], str | None, FieldStrategy], ...] = (
    (frozenset({"1003", "1004"}), None, MALL_STRATEGY),
    (frozenset({"1001"}), "통합주문목록", INTEGRATED_ORDERS_STRATEGY),
    (frozenset({"1001"}), "지정일_주문", RESERVED_DATE_ORDERS_STRATEGY),
    (frozenset({"1002"}), None, NAVERPAY_STRATEGY),
)


def select_strategy(channel_code: str, file_name: str) -> FieldStrategy:
    for channels, marker, strategy in STRATEGIES:
        if channel_code in channels and (marker is None or marker in file_name):
            return strategy
    return FALLBACK_STRATEGY


def resolve(row: Mapping[str, Any], channel_code: str, file_name: str) -> ResolvedRow:
    """Resolve *row* into product/option/quantity/sales for its export format."""
    return select_strategy(channel_code, file_name).resolve(row)
