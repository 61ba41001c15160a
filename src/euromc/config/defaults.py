"""Configuration defaults and environment bootstrap."""

from __future__ import annotations

import logging
import random
from copy import deepcopy
from typing import Any, Mapping, MutableMapping

import jax
import numpy as np
from ml_collections import ConfigDict

__all__ = ["ConfigDict", "get_config", "get_default_config", "init_environment"]


def get_default_config() -> ConfigDict:
    """Return the process-level defaults: seed, logging and JAX flags.

    Run parameters (paths, market, bump) are defined once, on
    :class:`euromc.config.schemas.AppConfig`.
    """
    cfg = ConfigDict()
    cfg.seed = 0

    cfg.logging = ConfigDict()
    cfg.logging.level = "INFO"
    cfg.logging.format = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    cfg.logging.datefmt = "%Y-%m-%d %H:%M:%S"
    cfg.logging.force = True

    cfg.jax = ConfigDict()
    cfg.jax.enable_x64 = True

    return cfg


def get_config(overrides: Mapping[str, Any] | None = None) -> ConfigDict:
    """Create a configuration, optionally applying ``overrides``."""
    cfg = get_default_config()
    if overrides:
        _deep_update(cfg, overrides)
    return cfg


def init_environment(config: ConfigDict | Mapping[str, Any] | None = None) -> ConfigDict:
    """Seed all libraries and configure logging based on ``config``."""
    if config is None:
        cfg = get_default_config()
    elif isinstance(config, ConfigDict):
        cfg = config.copy_and_resolve_references()
    else:
        cfg = ConfigDict(deepcopy(dict(config)))

    seed = int(cfg.get("seed", 0))
    random.seed(seed)
    np.random.seed(seed)

    logging_cfg = cfg.get("logging", {})
    level = logging_cfg.get("level", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=logging_cfg.get("format", None),
        datefmt=logging_cfg.get("datefmt", None),
        force=logging_cfg.get("force", False),
    )

    jax_cfg = cfg.get("jax", {})
    enable_x64 = jax_cfg.get("enable_x64")
    if enable_x64 is not None:
        jax.config.update("jax_enable_x64", bool(enable_x64))

    return cfg


def _deep_update(target: MutableMapping[str, Any], updates: Mapping[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, Mapping):
            current = target[key] if key in target else None
            if not isinstance(current, (ConfigDict, MutableMapping)):
                target[key] = ConfigDict()
            _deep_update(target[key], value)
        else:
            target[key] = value
