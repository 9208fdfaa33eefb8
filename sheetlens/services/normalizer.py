from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..models.cell import CellValue, cell_text, is_blank, is_number, to_native
from ..models.column import ColumnType
from ..models.schema import DataSchema

"""Value normalization: raw decoded cells -> canonical CellValues for a column type.

Normalization never raises. A value that cannot be coerced becomes None, except for
boolean columns, where anything outside the truthy token set is False.
"""

__all__ = [
    "TRUTHY_TOKENS",
    "normalize_row",
    "normalize_value",
    "parse_number",
]

TRUTHY_TOKENS = frozenset({"true", "sim", "yes", "1", "s"})

# currency symbols, percent sign and whitespace
_NUMBER_NOISE_RE = re.compile(r"US|[R$€£¥%\s]")


def _unify_separators(text: str) -> str:
    """Rewrite thousands/decimal separators so ``float()`` can read the text."""
    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        # the separator that appears last is the decimal one
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        if text.count(",") == 1:
            return text.replace(",", ".")
        return text.replace(",", "")
    if text.count(".") > 1:
        return text.replace(".", "")
    return text


def parse_number(value: Any) -> float | int | None:
    """Numeric value of a cell; None when it has no finite numeric reading."""
    if isinstance(value, bool):
        return None
    if is_number(value):
        return value if math.isfinite(value) else None
    text = _NUMBER_NOISE_RE.sub("", cell_text(value))
    if not text:
        return None
    try:
        number = float(_unify_separators(text))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return cell_text(value).strip().lower() in TRUTHY_TOKENS


def _parse_date(value: Any, dayfirst: bool) -> datetime | date | None:
    if isinstance(value, pd.Timestamp):
        return to_native(value)
    if isinstance(value, (datetime, date)):
        return value
    if not isinstance(value, str):
        return None
    parsed = pd.to_datetime(value.strip(), errors="coerce", dayfirst=dayfirst)
    return to_native(parsed)


def normalize_value(value: Any, column_type: ColumnType, *, dayfirst: bool = False) -> CellValue:
    """Convert one raw cell into the canonical value for ``column_type``.

    Args:
        value: raw decoded cell (str, number, bool, datetime, None or NaN)
        column_type: the column's semantic type
        dayfirst: read ambiguous date strings day-first (03/04 -> 3 April)

    Returns:
        float/int for numeric-family types, bool for boolean, datetime/date for
        temporal types and str otherwise. Blank input gives None.
    """
    value = to_native(value)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if column_type.is_numeric:
        return parse_number(value)
    if column_type is ColumnType.BOOLEAN:
        return _parse_boolean(value)
    if column_type.is_temporal:
        if is_blank(value):
            return None
        return _parse_date(value, dayfirst)
    return cell_text(value)


def normalize_row(
    raw: Mapping[str, Any], schema: DataSchema, *, dayfirst: bool = False
) -> dict[str, CellValue]:
    """Normalize every schema column of a decoded row; absent keys become None."""
    return {
        column.key: normalize_value(raw.get(column.key), column.type, dayfirst=dayfirst)
        for column in schema.columns
    }
