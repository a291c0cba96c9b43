"""YAML configuration for kvtool.

The file selects a backend and its init options, plus logging settings:

    backend: embedded
    options: ["data/kv.db"]
    serializer: null
    log_level: WARNING
    log_format: text
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from kvtool_lib.errors import ConfigError
from kvtool_lib.storage import create_store

logger = logging.getLogger(__name__)

CONFIG_ENV = "KVTOOL_CONFIG"
DEFAULT_CONFIG_PATH = Path("kvtool.yml")
LOG_FORMATS = ("text", "json")


class StoreConfig(BaseModel):
    backend: str = "embedded"
    options: List[str] = ["data/kv.db"]
    serializer: Optional[str] = None
    log_level: str = "WARNING"
    log_format: str = "text"
    app_name: Optional[str] = None

    @field_validator("options", mode="before")
    @classmethod
    def _stringify_options(cls, v: Any) -> Any:
        # YAML turns `5` into an int; init options are always strings
        if isinstance(v, (list, tuple)):
            return [str(o) for o in v]
        return v

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, v: str) -> str:
        if v not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")
        return v


def config_path(path: Union[str, Path, None] = None) -> Path:
    """Resolve the config file: explicit path, then $KVTOOL_CONFIG, then ./kvtool.yml."""
    if path:
        return Path(path)
    env = os.environ.get(CONFIG_ENV)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_config(path: Union[str, Path, None] = None) -> StoreConfig:
    """Load the configuration file, falling back to defaults when it is absent."""
    cfg_path = config_path(path)
    if not cfg_path.exists():
        logger.debug("No config at %s, using defaults", cfg_path)
        return StoreConfig()
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config {cfg_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"config {cfg_path} must be a mapping")
    try:
        cfg = StoreConfig(**raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {cfg_path}: {exc}") from exc
    logger.debug("Loaded config from %s: backend=%s", cfg_path, cfg.backend)
    return cfg


def open_store(config: StoreConfig):
    """Create and initialise the store described by `config`."""
    return create_store(config.backend, config.options, serializer=config.serializer)
