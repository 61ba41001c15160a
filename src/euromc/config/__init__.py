"""Central configuration access."""

from __future__ import annotations

from .defaults import ConfigDict, get_config, get_default_config, init_environment
from .schemas import (
    AppConfig,
    ConfigValidationError,
    EngineSettings,
    GreeksSettings,
    MarketSettings,
    collect_and_validate,
    discover_config_files,
    load_config,
)

__all__ = [
    "AppConfig",
    "ConfigDict",
    "ConfigValidationError",
    "EngineSettings",
    "GreeksSettings",
    "MarketSettings",
    "collect_and_validate",
    "discover_config_files",
    "get_config",
    "get_default_config",
    "init_environment",
    "load_config",
]
