"""Pydantic-based configuration schemas for YAML run files."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from euromc.core.engine import MarketParameters, MCConfig


class EngineSettings(BaseModel):
    """Simulation engine configuration parsed from YAML."""

    model_config = ConfigDict(extra="forbid")

    paths: int = Field(default=10_000_000, gt=0, description="Number of simulated paths")
    chunk_size: int = Field(default=1_000_000, gt=0, description="Paths simulated per chunk")
    workers: int = Field(default=1, ge=1, description="Worker threads sharing the paths")
    dtype: str = Field(default="float64", description="Floating point precision for simulations")
    timeout: Optional[float] = Field(default=None, gt=0, description="Deadline in seconds")

    @field_validator("dtype")
    @classmethod
    def validate_dtype(cls, value: str) -> str:
        allowed = {"float32", "float64"}
        canonical = value.lower()
        if canonical not in allowed:
            raise ValueError(f"dtype must be one of {sorted(allowed)}")
        return canonical


class MarketSettings(BaseModel):
    """Market inputs of a vanilla option."""

    model_config = ConfigDict(extra="forbid")

    spot: float = Field(default=100.0, gt=0, description="Spot price")
    strike: float = Field(default=100.0, gt=0, description="Strike price")
    rate: float = Field(default=0.05, description="Risk-free rate")
    volatility: float = Field(default=0.2, ge=0, description="Volatility")
    maturity: float = Field(default=1.0, gt=0, description="Time to maturity in years")


class GreeksSettings(BaseModel):
    """Finite-difference settings."""

    model_config = ConfigDict(extra="forbid")

    bump: float = Field(default=0.001, gt=0, description="Spot bump used for Delta/Gamma")


class AppConfig(BaseModel):
    """Top-level configuration container for pricing runs."""

    model_config = ConfigDict(extra="forbid")

    seed: int = Field(default=0, ge=0, description="Seed for PRNG initialisation")
    engine: EngineSettings = Field(default_factory=EngineSettings)
    market: MarketSettings = Field(default_factory=MarketSettings)
    greeks: GreeksSettings = Field(default_factory=GreeksSettings)

    def to_mc_config(self) -> MCConfig:
        """Convert to the internal :class:`~euromc.core.engine.MCConfig`."""
        return MCConfig(
            paths=self.engine.paths,
            chunk_size=self.engine.chunk_size,
            workers=self.engine.workers,
            dtype=self.engine.dtype,
            timeout=self.engine.timeout,
        )

    def to_market(self) -> MarketParameters:
        m = self.market
        return MarketParameters(m.spot, m.strike, m.rate, m.volatility, m.maturity)


class ConfigValidationError(RuntimeError):
    """Raised when one or more configuration files fail validation."""

    def __init__(self, errors: list[tuple[Path, ValidationError]]):
        message_lines = ["Configuration validation failed:"]
        for path, error in errors:
            message_lines.append(f"- {path}: {error}")
        super().__init__("\n".join(message_lines))
        self.errors = errors


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration at {path} must contain a mapping")
    return data


def load_config(path: Path | str) -> AppConfig:
    """Load a configuration file into an :class:`AppConfig`."""
    target = Path(path)
    payload = _load_yaml(target)
    return AppConfig.model_validate(payload)


def discover_config_files(paths: Iterable[Path | str]) -> list[Path]:
    """Discover YAML configuration files from provided paths."""
    discovered: list[Path] = []
    seen = set()
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_file() and path.suffix in {".yml", ".yaml"}:
            resolved = path.resolve()
            if resolved not in seen:
                discovered.append(resolved)
                seen.add(resolved)
        elif path.is_dir():
            for pattern in ("*.yml", "*.yaml"):
                for candidate in sorted(path.rglob(pattern)):
                    resolved = candidate.resolve()
                    if resolved not in seen:
                        discovered.append(resolved)
                        seen.add(resolved)
    return discovered


def collect_and_validate(paths: Iterable[Path | str]) -> list[AppConfig]:
    """Validate all configuration files under the given paths."""
    files = discover_config_files(paths)
    errors: list[tuple[Path, ValidationError]] = []
    configs: list[AppConfig] = []
    for file in files:
        try:
            configs.append(load_config(file))
        except ValidationError as error:
            errors.append((file, error))
    if errors:
        raise ConfigValidationError(errors)
    return configs


__all__ = [
    "AppConfig",
    "ConfigValidationError",
    "EngineSettings",
    "GreeksSettings",
    "MarketSettings",
    "collect_and_validate",
    "discover_config_files",
    "load_config",
]
