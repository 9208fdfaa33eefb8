from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Union

import numpy as np
import pandas as pd

"""Canonical cell values and the helpers shared by decoding, inference and querying.

A CellValue is what a normalized row stores: str, int/float, bool, date/datetime or None.
Raw decoded values are "loosely typed": they may still carry numpy scalars,
pandas timestamps or NaN until `to_native` is applied.
"""

__all__ = [
    "CellValue",
    "cell_text",
    "is_blank",
    "is_number",
    "to_native",
]

CellValue = Union[str, int, float, bool, datetime, date, None]


def is_number(value: Any) -> bool:
    """True for int/float values that are not bool (bool is an int subclass)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and the empty string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-like values are never blank scalars
        return False


def to_native(value: Any) -> Any:
    """Convert numpy / pandas scalars into plain Python values; missing -> None."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT or value is pd.NA:
        return None
    return value


def cell_text(value: Any) -> str:
    """String form of a cell.

    Integral floats print without the trailing ``.0`` (so ``1.0`` reads as ``"1"``),
    booleans print lower-case, dates print in ISO format and None prints as "".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
