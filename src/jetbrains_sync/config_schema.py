"""Unified configuration schema for jetbrains_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for paths, the vmoptions pipeline, the license mirror and logging.
Includes an adapter that flattens the validated sections into the keyword
fallbacks accepted by ``config.load_config()``.

Usage:
    from jetbrains_sync.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class PathsConfig(BaseModel):
    """Filesystem locations.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime, and platform defaults cover the rest.
    """

    user_dir: str | None = Field(
        default=None, description="JetBrains user configuration directory"
    )
    project_root: str | None = Field(
        default=None,
        description="Directory holding the backup and license archives",
    )
    resources_dir: str | None = Field(
        default=None,
        description="Directory with specific/, general and comment fragments",
    )

    model_config = {"frozen": True}


class VmOptionsConfig(BaseModel):
    """Settings for the vmoptions synchronisation pipeline."""

    backup_dir: str = Field(
        default="backup",
        description="Backup directory name under project_root",
    )
    keep_count: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Backups retained per product (1-100)",
    )
    products: dict[str, str] | None = Field(
        default=None,
        description="Product name -> vmoptions file name override",
    )

    model_config = {"frozen": True}

    @field_validator("backup_dir")
    @classmethod
    def _backup_dir_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("backup_dir cannot be empty")
        return value.strip()


class LicenseConfig(BaseModel):
    """Settings for the license mirror."""

    archive_dir: str = Field(
        default="license",
        description="License archive directory name under project_root",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    vmoptions: VmOptionsConfig = Field(default_factory=VmOptionsConfig)
    license: LicenseConfig = Field(default_factory=LicenseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get their defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> load_config() fallbacks
# ---------------------------------------------------------------------------


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten a ``UnifiedConfig`` into ``load_config()`` fallback values.

    Only values that are set are returned, so unset YAML keys never mask
    built-in defaults.

    Args:
        unified: The unified config produced by ``build_config()``.

    Returns:
        Dict keyed by ``load_config()`` parameter names.
    """
    fallbacks: dict[str, Any] = {
        k: v
        for k, v in unified.paths.model_dump().items()
        if v is not None
    }
    fallbacks["backup_dir"] = unified.vmoptions.backup_dir
    fallbacks["keep_count"] = unified.vmoptions.keep_count
    fallbacks["license_dir"] = unified.license.archive_dir
    if unified.vmoptions.products:
        fallbacks["products"] = dict(unified.vmoptions.products)
    return fallbacks
