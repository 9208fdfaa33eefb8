# Shared pytest fixtures
from __future__ import annotations
import io
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sheetlens.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _fresh_logging():
    # the CLI handler binds sys.stdout at setup time; rebuild it per test for capsys
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SHEETLENS_CONFIG", raising=False)
        monkeypatch.delenv("SHEETLENS_DISABLE_WORKER", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """inference:
  threshold: 0.7
  badge_max_distinct: 10
schema:
  name: Sales
  currency_code: BRL
  locale: pt-BR
decode:
  keep_na_strings: ["NA"]
normalize:
  dayfirst: false
query:
  page_size: 4
offload:
  enabled: false
  min_bytes: 1048576
upload:
  max_bytes: 52428800
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheetlens.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def build_xlsx(rows: list[list[object]], sheet_name: str = "Sheet1") -> bytes:
    """Workbook bytes with one sheet; row 1 is written as a plain data row (the header)."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buffer.getvalue()


def build_csv(text: str) -> bytes:
    return text.encode("utf-8")


@pytest.fixture()
def xlsx_bytes():
    return build_xlsx


@pytest.fixture()
def write_data_file(temp_workdir: Path):
    def _write(name: str, content: bytes) -> Path:
        path = temp_workdir / "data" / name
        path.write_bytes(content)
        return path
    return _write
