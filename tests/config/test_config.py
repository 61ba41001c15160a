from __future__ import annotations

import logging
import random
from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

from euromc.config import (
    AppConfig,
    ConfigValidationError,
    collect_and_validate,
    get_config,
    get_default_config,
    init_environment,
    load_config,
)
from euromc.core.engine import MCConfig
from euromc.core.rng import KeySeq


def _draw_python_random() -> list[float]:
    return [random.random() for _ in range(5)]


def test_overrides_merge_into_defaults() -> None:
    config = get_config({"seed": 5, "logging": {"level": "DEBUG"}})

    assert config.seed == 5
    assert config.logging.level == "DEBUG"
    assert config.logging.format == get_config().logging.format
    assert config.jax.enable_x64 is True


def test_defaults_hold_only_process_settings() -> None:
    assert set(get_default_config().keys()) == {"seed", "logging", "jax"}

    cfg = init_environment({"seed": 3})
    assert "runtime" not in cfg


def test_python_and_numpy_determinism() -> None:
    config = get_config({"seed": 123, "logging": {"level": "DEBUG"}})

    init_environment(config)
    expected_python = _draw_python_random()
    expected_numpy = np.random.rand(4)

    init_environment(config)
    actual_python = _draw_python_random()
    actual_numpy = np.random.rand(4)

    assert expected_python == actual_python
    np.testing.assert_allclose(expected_numpy, actual_numpy)
    assert logging.getLogger().level == logging.DEBUG


def test_key_sequence_from_environment() -> None:
    cfg = init_environment({"seed": 7})

    assert cfg.seed == 7
    first = np.asarray(KeySeq.from_config(cfg).uniform((3,)))
    second = np.asarray(KeySeq.from_config(init_environment({"seed": 7})).uniform((3,)))
    np.testing.assert_array_equal(first, second)


def test_load_yaml_config(tmp_path) -> None:
    path = tmp_path / "run.yaml"
    path.write_text(
        "seed: 4\n"
        "engine:\n"
        "  paths: 5000\n"
        "  workers: 2\n"
        "market:\n"
        "  spot: 95.0\n"
        "  volatility: 0.3\n"
        "greeks:\n"
        "  bump: 0.01\n",
        encoding="utf-8",
    )

    cfg = load_config(path)
    mc = cfg.to_mc_config()
    market = cfg.to_market()

    assert isinstance(mc, MCConfig)
    assert (mc.paths, mc.workers, mc.chunk_size) == (5000, 2, 1_000_000)
    assert market.spot == 95.0
    assert market.strike == 100.0
    assert market.volatility == 0.3
    assert cfg.greeks.bump == 0.01


def test_defaults_match_reference_run() -> None:
    cfg = AppConfig()

    assert cfg.engine.paths == 10_000_000
    assert (cfg.market.spot, cfg.market.strike) == (100.0, 100.0)
    assert (cfg.market.rate, cfg.market.volatility, cfg.market.maturity) == (0.05, 0.2, 1.0)


@pytest.mark.parametrize(
    "payload",
    [
        {"engine": {"paths": 0}},
        {"engine": {"dtype": "bfloat16"}},
        {"market": {"spot": -1.0}},
        {"market": {"volatility": -0.2}},
        {"greeks": {"bump": 0.0}},
        {"unknown": 1},
    ],
)
def test_invalid_payloads_are_rejected(payload) -> None:
    with pytest.raises(ValidationError):
        AppConfig.model_validate(payload)


def test_collect_and_validate_reports_every_bad_file(tmp_path) -> None:
    (tmp_path / "good.yaml").write_text("seed: 1\n", encoding="utf-8")
    (tmp_path / "bad.yml").write_text("market:\n  strike: 0\n", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "worse.yaml").write_text("engine:\n  workers: 0\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError) as info:
        collect_and_validate([tmp_path])

    assert len(info.value.errors) == 2


def test_non_mapping_yaml_is_rejected(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_repository_configs_validate() -> None:
    repo_config = Path(__file__).resolve().parents[2] / "config"
    configs = collect_and_validate([repo_config])

    assert configs
    assert all(cfg.engine.paths > 0 for cfg in configs)
