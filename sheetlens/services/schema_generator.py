from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.cell import cell_text, is_blank
from ..models.column import Alignment, BadgeColor, ColumnDefinition, ColumnFormat, ColumnType
from ..models.schema import DataSchema, SchemaFeatures
from .inference import DEFAULT_BADGE_MAX_DISTINCT, DEFAULT_THRESHOLD, infer_schema_types

"""Schema generation: inferred column types -> DataSchema with per-type display defaults."""

__all__ = [
    "BADGE_PALETTE",
    "DEFAULT_SCHEMA_NAME",
    "format_label",
    "generate_badge_colors",
    "generate_schema",
]

DEFAULT_SCHEMA_NAME = "Imported Data"

# blue, green, yellow, pink, indigo, teal, orange, purple, red, gray
BADGE_PALETTE: tuple[BadgeColor, ...] = (
    BadgeColor(bg="#dbeafe", text="#1e40af"),
    BadgeColor(bg="#dcfce7", text="#166534"),
    BadgeColor(bg="#fef3c7", text="#92400e"),
    BadgeColor(bg="#fce7f3", text="#9d174d"),
    BadgeColor(bg="#e0e7ff", text="#3730a3"),
    BadgeColor(bg="#ccfbf1", text="#115e59"),
    BadgeColor(bg="#fed7aa", text="#9a3412"),
    BadgeColor(bg="#f3e8ff", text="#6b21a8"),
    BadgeColor(bg="#fecaca", text="#991b1b"),
    BadgeColor(bg="#e5e7eb", text="#374151"),
)

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")


def format_label(key: str) -> str:
    """Human label for a column key.

    Underscores become spaces, a space is inserted at lower->upper case boundaries
    and every word is capitalized: ``"first_name"`` -> ``"First Name"``,
    ``"unitPrice"`` -> ``"Unit Price"``.
    """
    spaced = _CAMEL_BOUNDARY_RE.sub(r"\1 \2", key.replace("_", " "))
    return " ".join(word[:1].upper() + word[1:].lower() for word in spaced.split())


def generate_badge_colors(values: Iterable[Any]) -> dict[str, BadgeColor]:
    """Assign palette colours to distinct values in first-seen order, cycling."""
    colors: dict[str, BadgeColor] = {}
    for value in values:
        if is_blank(value):
            continue
        text = cell_text(value)
        if text not in colors:
            colors[text] = BADGE_PALETTE[len(colors) % len(BADGE_PALETTE)]
    return colors


def _column_format(
    column_type: ColumnType,
    values: list[Any],
    *,
    currency_code: str,
    locale: str,
) -> tuple[ColumnFormat, Alignment]:
    if column_type is ColumnType.CURRENCY:
        return ColumnFormat(type=column_type, currency=currency_code, locale=locale), Alignment.RIGHT
    if column_type in (ColumnType.NUMBER, ColumnType.PERCENTAGE, ColumnType.PROGRESS):
        return ColumnFormat(type=column_type, decimals=2), Alignment.RIGHT
    if column_type is ColumnType.DATE:
        return ColumnFormat(type=column_type, date_format="dd/MM/yyyy"), Alignment.CENTER
    if column_type is ColumnType.DATETIME:
        return ColumnFormat(type=column_type, date_format="dd/MM/yyyy HH:mm"), Alignment.CENTER
    if column_type is ColumnType.BADGE:
        return (
            ColumnFormat(type=column_type, badge_colors=generate_badge_colors(values)),
            Alignment.CENTER,
        )
    if column_type is ColumnType.BOOLEAN:
        return ColumnFormat(type=column_type), Alignment.CENTER
    return ColumnFormat(type=column_type), Alignment.LEFT


def generate_schema(
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    *,
    schema_id: str | None = None,
    schema_name: str | None = None,
    currency_code: str = "BRL",
    locale: str = "pt-BR",
    threshold: float = DEFAULT_THRESHOLD,
    badge_max_distinct: int = DEFAULT_BADGE_MAX_DISTINCT,
) -> DataSchema:
    """Build a DataSchema from decoded headers and rows.

    One column per distinct header, in first-appearance order. Only string and
    email columns are searchable; every column is sortable and filterable.

    Args:
        headers: decoded header names (may contain duplicates)
        rows: decoded row maps keyed by header
        schema_id: schema identifier, a fresh uuid4 hex when omitted
        schema_name: display name, "Imported Data" when omitted
        currency_code: ISO code put on currency columns
        locale: locale put on currency columns
        threshold: inference threshold
        badge_max_distinct: inference badge cut-off

    Returns:
        The generated DataSchema (all features enabled, no default sort)
    """
    types = infer_schema_types(
        headers, rows, threshold=threshold, badge_max_distinct=badge_max_distinct
    )
    columns: list[ColumnDefinition] = []
    for key, column_type in types.items():
        values = [row.get(key) for row in rows]
        column_format, align = _column_format(
            column_type, values, currency_code=currency_code, locale=locale
        )
        columns.append(
            ColumnDefinition(
                key=key,
                label=format_label(key),
                format=column_format,
                sortable=True,
                filterable=True,
                searchable=column_type in (ColumnType.STRING, ColumnType.EMAIL),
                align=align,
            )
        )
    return DataSchema(
        id=schema_id or uuid.uuid4().hex,
        name=schema_name or DEFAULT_SCHEMA_NAME,
        columns=tuple(columns),
        features=SchemaFeatures(),
    )
