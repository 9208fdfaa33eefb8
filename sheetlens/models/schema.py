from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError

from .column import Alignment, BadgeColor, ColumnDefinition, ColumnFormat, ColumnType
from .query_state import SortDirection, SortSpec

"""DataSchema: the whole-table contract, plus (de)serialization of schema documents.

Externally supplied schemas (YAML or JSON files, camelCase keys) are validated with
jsonschema against config/schemas/data_schema.json before being turned into a
DataSchema. A supplied schema always wins over inference.
"""

__all__ = [
    "DATA_SCHEMA_PATH",
    "DataSchema",
    "SchemaError",
    "SchemaFeatures",
]

DATA_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "config" / "schemas" / "data_schema.json"


class SchemaError(Exception):
    """Raised when a schema document is malformed."""


@dataclass(frozen=True)
class SchemaFeatures:
    export: bool = True
    print: bool = True
    charts: bool = True
    pagination: bool = True
    search: bool = True
    filters: bool = True
    column_toggle: bool = True


_FEATURE_KEYS = {
    "export": "export",
    "print": "print",
    "charts": "charts",
    "pagination": "pagination",
    "search": "search",
    "filters": "filters",
    "columnToggle": "column_toggle",
}


@dataclass(frozen=True)
class DataSchema:
    """Whole-table contract. One per dataset, immutable after creation."""
    id: str
    name: str
    columns: tuple[ColumnDefinition, ...]
    description: str | None = None
    default_sort: SortSpec | None = None
    features: SchemaFeatures = field(default_factory=SchemaFeatures)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.columns]

    def column(self, key: str) -> ColumnDefinition | None:
        for col in self.columns:
            if col.key == key:
                return col
        return None

    @property
    def searchable_keys(self) -> list[str]:
        return [c.key for c in self.columns if c.searchable]

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DataSchema:
        """Build a DataSchema from a validated schema document.

        Raises:
            SchemaError: if the document does not match data_schema.json
        """
        _validate_document(data)
        columns = tuple(_column_from_dict(c) for c in data["columns"])
        default_sort = None
        if data.get("defaultSort"):
            ds = data["defaultSort"]
            default_sort = SortSpec(column=ds["column"], direction=SortDirection(ds["direction"]))
        features_raw = data.get("features") or {}
        features = SchemaFeatures(
            **{attr: features_raw[key] for key, attr in _FEATURE_KEYS.items() if key in features_raw}
        )
        return cls(
            id=data["id"],
            name=data["name"],
            columns=columns,
            description=data.get("description"),
            default_sort=default_sort,
            features=features,
        )

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "columns": [_column_to_dict(c) for c in self.columns],
            "features": {key: getattr(self.features, attr) for key, attr in _FEATURE_KEYS.items()},
        }
        if self.description is not None:
            doc["description"] = self.description
        if self.default_sort is not None:
            doc["defaultSort"] = {
                "column": self.default_sort.column,
                "direction": self.default_sort.direction.value,
            }
        return doc


def _validate_document(data: Any) -> None:
    try:
        schema = json.loads(DATA_SCHEMA_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SchemaError(f"cannot load schema definition {DATA_SCHEMA_PATH}: {e}") from e
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        raise SchemaError(f"schema validation failed: {e.message}") from e


def _column_from_dict(raw: dict[str, Any]) -> ColumnDefinition:
    fmt = raw["format"]
    badge_colors = None
    if fmt.get("badgeColors") is not None:
        badge_colors = {k: BadgeColor(bg=v["bg"], text=v["text"]) for k, v in fmt["badgeColors"].items()}
    column_format = ColumnFormat(
        type=ColumnType(fmt["type"]),
        locale=fmt.get("locale"),
        currency=fmt.get("currency"),
        decimals=fmt.get("decimals"),
        date_format=fmt.get("dateFormat"),
        prefix=fmt.get("prefix"),
        suffix=fmt.get("suffix"),
        badge_colors=badge_colors,
    )
    return ColumnDefinition(
        key=raw["key"],
        label=raw["label"],
        format=column_format,
        sortable=raw.get("sortable", True),
        filterable=raw.get("filterable", True),
        searchable=raw.get("searchable", False),
        hidden=raw.get("hidden", False),
        align=Alignment(raw.get("align", Alignment.LEFT.value)),
        width=raw.get("width"),
    )


def _column_to_dict(col: ColumnDefinition) -> dict[str, Any]:
    fmt: dict[str, Any] = {"type": col.format.type.value}
    optional = {
        "locale": col.format.locale,
        "currency": col.format.currency,
        "decimals": col.format.decimals,
        "dateFormat": col.format.date_format,
        "prefix": col.format.prefix,
        "suffix": col.format.suffix,
    }
    fmt.update({k: v for k, v in optional.items() if v is not None})
    if col.format.badge_colors is not None:
        fmt["badgeColors"] = {k: {"bg": c.bg, "text": c.text} for k, c in col.format.badge_colors.items()}
    doc: dict[str, Any] = {
        "key": col.key,
        "label": col.label,
        "format": fmt,
        "sortable": col.sortable,
        "filterable": col.filterable,
        "searchable": col.searchable,
        "hidden": col.hidden,
        "align": col.align.value,
    }
    if col.width is not None:
        doc["width"] = col.width
    return doc
