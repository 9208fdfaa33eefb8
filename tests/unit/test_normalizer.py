from __future__ import annotations
from datetime import date, datetime

import pandas as pd
import pytest

from sheetlens.models.column import ColumnFormat, ColumnDefinition, ColumnType
from sheetlens.models.schema import DataSchema
from sheetlens.services.normalizer import normalize_row, normalize_value, parse_number


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("R$ 10,50", 10.5),
        ("R$ 20,00", 20.0),
        ("$1,200.50", 1200.5),
        ("1.200,50 €", 1200.5),
        ("1,234,567", 1234567.0),
        ("1.234.567", 1234567.0),
        ("45%", 45.0),
        (" 12,5 % ", 12.5),
        ("-3.25", -3.25),
        (7, 7),
        (2.5, 2.5),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "R$", float("inf"), "nan", True])
def test_parse_number_failures_are_none(raw):
    assert parse_number(raw) is None


def test_numeric_family_types_share_parsing():
    for column_type in (ColumnType.NUMBER, ColumnType.CURRENCY, ColumnType.PERCENTAGE, ColumnType.PROGRESS):
        assert normalize_value("R$ 10,50", column_type) == 10.5


def test_scenario_boolean_tokens():
    values = [normalize_value(v, ColumnType.BOOLEAN) for v in ["sim", "não", "yes"]]
    assert values == [True, False, True]


@pytest.mark.parametrize(
    "raw,expected",
    [(True, True), (False, False), ("S", True), ("1", True), (1.0, True), ("no", False), ("maybe", False)],
)
def test_boolean_is_never_tristate(raw, expected):
    assert normalize_value(raw, ColumnType.BOOLEAN) is expected


def test_blank_is_none_for_every_type():
    for column_type in ColumnType:
        assert normalize_value(None, column_type) is None
        assert normalize_value(float("nan"), column_type) is None


def test_dates():
    assert normalize_value(datetime(2024, 1, 5, 8, 30), ColumnType.DATETIME) == datetime(2024, 1, 5, 8, 30)
    assert normalize_value(date(2024, 1, 5), ColumnType.DATE) == date(2024, 1, 5)
    assert normalize_value(pd.Timestamp("2024-01-05"), ColumnType.DATE) == datetime(2024, 1, 5)
    assert normalize_value("2024-01-05", ColumnType.DATE) == datetime(2024, 1, 5)
    assert normalize_value("not a date", ColumnType.DATE) is None
    assert normalize_value(12, ColumnType.DATE) is None


def test_dayfirst():
    assert normalize_value("03/04/2024", ColumnType.DATE) == datetime(2024, 3, 4)
    assert normalize_value("03/04/2024", ColumnType.DATE, dayfirst=True) == datetime(2024, 4, 3)


def test_other_types_become_text():
    assert normalize_value(1.0, ColumnType.STRING) == "1"
    assert normalize_value(12345678, ColumnType.PHONE) == "12345678"
    assert normalize_value(True, ColumnType.BADGE) == "true"
    assert normalize_value("a@b.com", ColumnType.EMAIL) == "a@b.com"


def test_normalize_row_follows_schema_columns():
    schema = DataSchema(
        id="s",
        name="t",
        columns=(
            ColumnDefinition(key="price", label="Price", format=ColumnFormat(type=ColumnType.CURRENCY)),
            ColumnDefinition(key="name", label="Name", format=ColumnFormat(type=ColumnType.STRING)),
        ),
    )
    assert normalize_row({"price": "R$ 10,50", "extra": 1}, schema) == {"price": 10.5, "name": None}
