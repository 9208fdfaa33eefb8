from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from ..models.cell import cell_text, is_blank, is_number
from ..models.column import ColumnType

"""Column type inference by ordered heuristic vote.

Each sampled value is classified by the first matching classifier in CLASSIFIERS
(fixed precedence). The column then takes the first type in TYPE_PRIORITY whose
share of the sample reaches the threshold. When no type gets there, a column with
few distinct values is a badge (bounded enumeration); otherwise it is a string.

Known bias: every native number in [0, 100] is counted as both ``number`` and
``progress``, and ``progress`` is checked first, so an ordinary count column whose
values stay at or below 100 is classified as ``progress``.
"""

__all__ = [
    "CLASSIFIERS",
    "DEFAULT_BADGE_MAX_DISTINCT",
    "DEFAULT_THRESHOLD",
    "TYPE_PRIORITY",
    "classify_value",
    "infer_column_type",
    "infer_schema_types",
    "select_type",
    "tally_types",
]

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
DEFAULT_BADGE_MAX_DISTINCT = 10

TYPE_PRIORITY: tuple[ColumnType, ...] = (
    ColumnType.EMAIL,
    ColumnType.URL,
    ColumnType.IMAGE,
    ColumnType.PHONE,
    ColumnType.CURRENCY,
    ColumnType.PERCENTAGE,
    ColumnType.DATE,
    ColumnType.DATETIME,
    ColumnType.BOOLEAN,
    ColumnType.PROGRESS,
    ColumnType.NUMBER,
    ColumnType.BADGE,
    ColumnType.STRING,
)

BOOLEAN_TOKENS = frozenset({"true", "false", "sim", "não", "yes", "no", "0", "1"})

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^https?://\S+$")
IMAGE_SUFFIX_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)
PHONE_RE = re.compile(r"^[\d\s()+-]{8,}$")
LETTER_RE = re.compile(r"[a-zA-Z]")
_SYMBOL = r"(?:R\$|US\$|\$|€|£|¥)"
CURRENCY_RE = re.compile(rf"^{_SYMBOL}\s?[\d.,]+$|^[\d.,]+\s?{_SYMBOL}$")
PERCENTAGE_RE = re.compile(r"^[\d.,]+\s?%$")
DATE_STRING_RE = re.compile(r"^\d{1,4}[-/]\d{1,2}[-/]\d{1,4}$")

# (value, stripped text) -> type, or None when the classifier does not apply
Classifier = Callable[[Any, str], "ColumnType | None"]


def _boolean(value: Any, text: str) -> ColumnType | None:
    if isinstance(value, bool) or text.lower() in BOOLEAN_TOKENS:
        return ColumnType.BOOLEAN
    return None


def _native_date(value: Any, text: str) -> ColumnType | None:
    return ColumnType.DATE if isinstance(value, date) else None


def _email(value: Any, text: str) -> ColumnType | None:
    return ColumnType.EMAIL if EMAIL_RE.match(text) else None


def _url_or_image(value: Any, text: str) -> ColumnType | None:
    if not URL_RE.match(text):
        return None
    return ColumnType.IMAGE if IMAGE_SUFFIX_RE.search(text) else ColumnType.URL


def _phone(value: Any, text: str) -> ColumnType | None:
    if PHONE_RE.match(text) and not LETTER_RE.search(text):
        return ColumnType.PHONE
    return None


def _currency(value: Any, text: str) -> ColumnType | None:
    return ColumnType.CURRENCY if CURRENCY_RE.match(text) else None


def _percentage(value: Any, text: str) -> ColumnType | None:
    return ColumnType.PERCENTAGE if PERCENTAGE_RE.match(text) else None


def _date_string(value: Any, text: str) -> ColumnType | None:
    return ColumnType.DATE if DATE_STRING_RE.match(text) else None


def _number(value: Any, text: str) -> ColumnType | None:
    return ColumnType.NUMBER if is_number(value) else None


CLASSIFIERS: tuple[Classifier, ...] = (
    _boolean,
    _native_date,
    _email,
    _url_or_image,
    _phone,
    _currency,
    _percentage,
    _date_string,
    _number,
)


def classify_value(value: Any) -> ColumnType:
    """Bucket for a single non-blank value (first matching classifier wins)."""
    text = cell_text(value).strip()
    for classifier in CLASSIFIERS:
        tag = classifier(value, text)
        if tag is not None:
            return tag
    return ColumnType.STRING


def tally_types(sample: Iterable[Any]) -> Counter[ColumnType]:
    counts: Counter[ColumnType] = Counter()
    for value in sample:
        tag = classify_value(value)
        counts[tag] += 1
        if tag is ColumnType.NUMBER and 0 <= value <= 100:
            counts[ColumnType.PROGRESS] += 1
    return counts


def select_type(
    counts: Mapping[ColumnType, int],
    total: int,
    sample: Sequence[Any],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    badge_max_distinct: int = DEFAULT_BADGE_MAX_DISTINCT,
) -> ColumnType:
    for column_type in TYPE_PRIORITY:
        if counts.get(column_type, 0) / total >= threshold:
            return column_type
    distinct = {cell_text(v).lower() for v in sample}
    if 0 < len(distinct) <= badge_max_distinct:
        return ColumnType.BADGE
    return ColumnType.STRING


def infer_column_type(
    values: Iterable[Any],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    badge_max_distinct: int = DEFAULT_BADGE_MAX_DISTINCT,
) -> ColumnType:
    """Infer the semantic type of one column from all of its values.

    Args:
        values: every value stored under the column key, blanks included
        threshold: share of the sample a type must reach to be selected
        badge_max_distinct: distinct-value cut-off for the badge fallback

    Returns:
        The inferred ColumnType; ``string`` for an all-blank column.
    """
    sample = [v for v in values if not is_blank(v)]
    if not sample:
        return ColumnType.STRING
    counts = tally_types(sample)
    return select_type(
        counts,
        len(sample),
        sample,
        threshold=threshold,
        badge_max_distinct=badge_max_distinct,
    )


def infer_schema_types(
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    *,
    threshold: float = DEFAULT_THRESHOLD,
    badge_max_distinct: int = DEFAULT_BADGE_MAX_DISTINCT,
) -> dict[str, ColumnType]:
    """Infer every column, sequentially, in header order."""
    types: dict[str, ColumnType] = {}
    for header in headers:
        if header in types:
            continue
        types[header] = infer_column_type(
            (row.get(header) for row in rows),
            threshold=threshold,
            badge_max_distinct=badge_max_distinct,
        )
        logger.debug("inferred column %r as %s", header, types[header].value)
        if types[header] is ColumnType.PROGRESS:
            logger.info("column %r inferred as progress: every number is within 0-100, may be a plain count", header)
    return types
