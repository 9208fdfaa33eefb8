from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the sheetlens pipeline.

These are the domain models the loader in sheetlens/config/loader.py fills from
YAML. Every field has a default, so ``AppConfig()`` is a complete configuration.
The objects are plain frozen dataclasses so they can be handed to a worker process.
"""

__all__ = [
    "AppConfig",
    "DecodeConfig",
    "InferenceConfig",
    "NormalizeConfig",
    "OffloadConfig",
    "QueryConfig",
    "SchemaConfig",
    "UploadConfig",
]


@dataclass(frozen=True)
class InferenceConfig:
    """Tunable inference heuristics."""
    threshold: float = 0.7        # share of samples a type must reach
    badge_max_distinct: int = 10  # enumeration fallback cut-off


@dataclass(frozen=True)
class SchemaConfig:
    """Defaults applied to generated schemas."""
    name: str = "Imported Data"
    currency_code: str = "BRL"
    locale: str = "pt-BR"


@dataclass(frozen=True)
class DecodeConfig:
    # Strings removed from pandas' default NA set so they stay literal (e.g. "NA")
    keep_na_strings: tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizeConfig:
    dayfirst: bool = False  # date strings like 03/04/2024 read as 3 April when True


@dataclass(frozen=True)
class QueryConfig:
    page_size: int = 25


@dataclass(frozen=True)
class OffloadConfig:
    """When to run the pipeline inside a worker process."""
    enabled: bool = True
    min_bytes: int = 1024 * 1024


@dataclass(frozen=True)
class UploadConfig:
    max_bytes: int = 50 * 1024 * 1024  # checked by the CLI before parsing


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    normalize: NormalizeConfig = field(default_factory=NormalizeConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    offload: OffloadConfig = field(default_factory=OffloadConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
