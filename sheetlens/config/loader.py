from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    AppConfig,
    DecodeConfig,
    InferenceConfig,
    NormalizeConfig,
    OffloadConfig,
    QueryConfig,
    SchemaConfig,
    UploadConfig,
)
from ..models.schema import DataSchema, SchemaError

"""Config loader.

Responsibilities:
- Load YAML config (default config/sheetlens.yml, or $SHEETLENS_CONFIG)
- Validate against schemas/config_schema.json
- Apply defaults for every missing key
- Load externally supplied DataSchema documents (YAML or JSON)
"""

__all__ = [
    "CONFIG_ENV_VAR",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_schema",
    "resolve_config_path",
]

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sheetlens.yml")
CONFIG_ENV_VAR = "SHEETLENS_CONFIG"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: if the schema file is missing or invalid, or the data
            fails validation (unknown keys, wrong types, out-of-range values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e


def resolve_config_path(explicit: Path | None = None) -> tuple[Path, bool]:
    """Pick the config file to read.

    Returns:
        (path, required): ``required`` is True when the path was asked for
        explicitly (argument or environment) and must therefore exist.
    """
    if explicit is not None:
        return explicit, True
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Path | None = None) -> AppConfig:
    config_path, required = resolve_config_path(path)
    if not config_path.exists():
        if required:
            raise ConfigError(f"config file not found: {config_path}")
        return AppConfig()

    data = _read_yaml(config_path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)

    inference = data.get("inference", {})
    schema = data.get("schema", {})
    decode = data.get("decode", {})
    normalize = data.get("normalize", {})
    query = data.get("query", {})
    offload = data.get("offload", {})
    upload = data.get("upload", {})

    return AppConfig(
        inference=InferenceConfig(
            threshold=float(inference.get("threshold", InferenceConfig.threshold)),
            badge_max_distinct=inference.get("badge_max_distinct", InferenceConfig.badge_max_distinct),
        ),
        schema=SchemaConfig(
            name=schema.get("name", SchemaConfig.name),
            currency_code=schema.get("currency_code", SchemaConfig.currency_code),
            locale=schema.get("locale", SchemaConfig.locale),
        ),
        decode=DecodeConfig(keep_na_strings=tuple(decode.get("keep_na_strings", ()))),
        normalize=NormalizeConfig(dayfirst=normalize.get("dayfirst", NormalizeConfig.dayfirst)),
        query=QueryConfig(page_size=query.get("page_size", QueryConfig.page_size)),
        offload=OffloadConfig(
            enabled=offload.get("enabled", OffloadConfig.enabled),
            min_bytes=offload.get("min_bytes", OffloadConfig.min_bytes),
        ),
        upload=UploadConfig(max_bytes=upload.get("max_bytes", UploadConfig.max_bytes)),
    )


def load_schema(path: Path) -> DataSchema:
    """Load a DataSchema document from a .json / .yml / .yaml file.

    Raises:
        ConfigError: if the file is missing, unreadable or not a valid schema document
    """
    if not path.exists():
        raise ConfigError(f"schema file not found: {path}")
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid json: {e}") from e
    else:
        data = _read_yaml(path)
    try:
        return DataSchema.from_dict(data)
    except SchemaError as e:
        raise ConfigError(str(e)) from e
