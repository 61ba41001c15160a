"""Command line interface for Monte Carlo and Greeks pricing runs."""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable, Sequence

from pydantic import ValidationError

from euromc.config import AppConfig, get_config, init_environment, load_config
from euromc.core.engine import MonteCarloPricer, OptionKind
from euromc.core.errors import InvalidParameterError, PricingError
from euromc.models import bs

_MARKET_FLAGS = ("spot", "strike", "rate", "volatility", "maturity")
_ENGINE_FLAGS = ("paths", "chunk_size", "workers", "timeout")


def _resolve_config(args: argparse.Namespace) -> AppConfig:
    """Merge an optional YAML file with command line overrides and validate."""
    base = load_config(args.config) if args.config else AppConfig()
    payload = base.model_dump()

    def _override(section: str, keys: Sequence[str]) -> None:
        for key in keys:
            value = getattr(args, key, None)
            if value is not None:
                payload[section][key] = value

    _override("market", _MARKET_FLAGS)
    _override("engine", _ENGINE_FLAGS)
    if getattr(args, "bump", None) is not None:
        payload["greeks"]["bump"] = args.bump
    if args.seed is not None:
        payload["seed"] = args.seed
    return AppConfig.model_validate(payload)


def _handle_price(args: argparse.Namespace, cfg: AppConfig) -> list[tuple[str, Any]]:
    market = cfg.to_market()
    pricer = MonteCarloPricer(cfg.to_mc_config(), seed=cfg.seed)
    call = pricer.price(market, OptionKind.CALL)
    put = pricer.price(market, OptionKind.PUT)
    return [
        ("Number of Paths", cfg.engine.paths),
        ("Underlying", market.spot),
        ("Strike", market.strike),
        ("Risk-Free Rate", market.rate),
        ("Volatility", market.volatility),
        ("Maturity", market.maturity),
        ("Call Price", call.price),
        ("Call Std Error", call.std_error),
        ("Put Price", put.price),
        ("Put Std Error", put.std_error),
    ]


def _handle_greeks(args: argparse.Namespace, cfg: AppConfig) -> list[tuple[str, Any]]:
    m = cfg.market
    h = cfg.greeks.bump
    kind = OptionKind.parse(args.kind)
    label = kind.value.capitalize()
    delta = bs.delta_fd(m.spot, m.strike, m.rate, m.volatility, m.maturity, kind, h)
    gamma = bs.gamma_fd(m.spot, m.strike, m.rate, m.volatility, m.maturity, kind, h)
    return [
        ("Underlying", m.spot),
        ("Delta underlying", h),
        ("Strike", m.strike),
        ("Risk-Free Rate", m.rate),
        ("Volatility", m.volatility),
        ("Maturity", m.maturity),
        (f"{label} Delta", delta),
        (f"{label} Gamma", gamma),
    ]


def _render(rows: list[tuple[str, Any]], *, as_json: bool) -> str:
    if as_json:
        return json.dumps({label: value for label, value in rows}, indent=2)
    width = max(len(label) for label, _ in rows) + 2
    return "\n".join(f"{label + ':':<{width}}{value}" for label, value in rows)


def _add_market_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to YAML configuration")
    parser.add_argument("--spot", type=float, help="Spot price (default 100)")
    parser.add_argument("--strike", type=float, help="Strike price (default 100)")
    parser.add_argument("--rate", type=float, help="Risk-free rate (default 0.05)")
    parser.add_argument("--volatility", type=float, help="Volatility (default 0.2)")
    parser.add_argument("--maturity", type=float, help="Time to maturity in years (default 1.0)")
    parser.add_argument("--seed", type=int, help="Random seed (default 0)")
    parser.add_argument("--json", action="store_true", help="Emit a JSON document")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity on stderr",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="euromc", description="European vanilla option pricing")
    subparsers = parser.add_subparsers(dest="command")

    price_parser = subparsers.add_parser("price", help="Monte Carlo call and put prices")
    _add_market_arguments(price_parser)
    price_parser.add_argument(
        "--paths", type=int, help="Number of simulated paths (default 10,000,000)"
    )
    price_parser.add_argument("--chunk-size", dest="chunk_size", type=int, help="Paths per chunk")
    price_parser.add_argument("--workers", type=int, help="Worker threads")
    price_parser.add_argument("--timeout", type=float, help="Deadline in seconds")
    price_parser.set_defaults(handler=_handle_price)

    greeks_parser = subparsers.add_parser("greeks", help="Finite-difference Delta and Gamma")
    _add_market_arguments(greeks_parser)
    greeks_parser.add_argument("--bump", type=float, help="Spot bump h (default 0.001)")
    greeks_parser.add_argument("--kind", choices=("call", "put"), default="call")
    greeks_parser.set_defaults(handler=_handle_greeks)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler: Callable[..., list[tuple[str, Any]]] | None = getattr(args, "handler", None)

    if handler is None:
        parser.print_help()
        return 1

    try:
        cfg = _resolve_config(args)
        init_environment(get_config({"seed": cfg.seed, "logging": {"level": args.log_level}}))
        rows = handler(args, cfg)
    except InvalidParameterError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except PricingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except (ValidationError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(_render(rows, as_json=args.json))
    return 0


def run() -> None:  # pragma: no cover - console script entry point
    sys.exit(main())
