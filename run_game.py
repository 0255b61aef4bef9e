#!/usr/bin/env python3
"""CLI entrypoint for the stock investment game.

Usage::

    python run_game.py --config config/default.yaml
    python run_game.py --config config/diversified.yaml --output-dir results/

The game loads a YAML configuration file, builds the session and the
scripted strategy, then plays every turn.  The run name is derived from the
config file name (e.g. ``default.yaml`` -> ``default``).
"""

from __future__ import annotations

import argparse
import logging
import sys

from models.config import GameConfig
from simulation.runner import GameRunner
from simulation.sim_logging import run_name_from_config_path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Play a ten-turn stock investment game with a scripted strategy.",
    )
    parser.add_argument(
        "--config",
        required=True,
        type=str,
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        type=str,
        help="Directory where game results will be written (default: results/).",
    )
    parser.add_argument(
        "--strategy",
        default=None,
        type=str,
        help="Override the strategy named in the config (hold, diversified, random).",
    )
    parser.add_argument(
        "--seed",
        default=None,
        type=int,
        help="Override the market random seed.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _apply_overrides(config: GameConfig, args: argparse.Namespace) -> GameConfig:
    """Return *config* with CLI overrides applied (the same object if there are none)."""
    if args.strategy is None and args.seed is None:
        return config
    updated = config
    if args.strategy is not None:
        updated = updated.model_copy(
            update={"strategy": updated.strategy.model_copy(update={"name": args.strategy})}
        )
    if args.seed is not None:
        updated = updated.model_copy(
            update={"market": updated.market.model_copy(update={"seed": args.seed})}
        )
    return updated


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Loading config from '%s'...", args.config)

    config = GameConfig.from_yaml(args.config)
    overridden = _apply_overrides(config, args)
    logger.info("Config loaded: strategy='%s'", overridden.strategy.name)

    # With overrides the effective config is dumped instead of copied.
    runner = GameRunner(
        overridden,
        config_yaml_path=args.config if overridden is config else None,
        output_dir=args.output_dir,
        run_name=run_name_from_config_path(args.config),
    )
    result = runner.run()
    logger.info(
        "Final asset %d (%s), profit rate %.1f%%.",
        result.final_asset,
        result.lifestyle_grade.value,
        result.profit_rate_pct,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
