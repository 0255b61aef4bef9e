"""Game runner: plays one whole game with a scripted strategy.

Lifecycle:
    1. Build the session and the strategy from config.
    2. For each turn:
        - Ask the strategy for orders.
        - Submit them in order; rejected orders are logged, not fatal.
        - Advance the turn.
    3. Write the game log and summary.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

from models.config import GameConfig
from models.log import GameLog, GameResult
from simulation.session import GameSession
from simulation.sim_logging import GameLogger, run_name_from_config_path
from strategies.registry import create_strategy

logger = logging.getLogger(__name__)


class GameRunner:
    """Drives one session through every turn with the configured strategy."""

    def __init__(
        self,
        config: GameConfig,
        config_yaml_path: str | Path | None = None,
        output_dir: str | Path = "results",
        rng: random.Random | None = None,
        run_name: str | None = None,
    ) -> None:
        self._config = config
        self._config_yaml_path = config_yaml_path
        if run_name is None:
            run_name = (
                run_name_from_config_path(config_yaml_path) if config_yaml_path is not None else "game"
            )
        self._run_name = run_name
        self._game_logger = GameLogger(output_dir, config, self._run_name)
        self._rng = rng
        self.session: GameSession | None = None

    def run(self) -> GameResult:
        """Play the full game and return its result."""
        self._game_logger.init_run(self._config_yaml_path)

        session = GameSession(self._config, rng=self._rng)
        self.session = session
        strategy = create_strategy(self._config.strategy)
        rejections: list[str] = []

        logger.info(
            "Starting game '%s' with strategy '%s'.",
            self._run_name,
            self._config.strategy.name,
        )
        session.start()

        result: GameResult | None = None
        while result is None:
            orders = strategy.decide(session)
            for order in orders:
                outcome = session.submit(order)
                if not outcome.accepted:
                    rejections.append(
                        f"turn {session.turn}: {order.side} {order.symbol} x{order.quantity}: "
                        f"{outcome.reason.value if outcome.reason else 'rejected'}"
                    )
            logger.info("Turn %d: %d order(s) submitted.", session.turn, len(orders))
            result = session.advance_turn()

        game_log = GameLog(
            run_name=self._game_logger.run_name,
            config=self._config,
            turns=session.history.turns,
            trades=session.history.trades,
            events=session.history.events,
            rejections=rejections,
            result=result,
        )
        self._game_logger.finalize(game_log, self._build_summary(result, len(rejections)))
        logger.info("Game '%s' complete. Output: %s", self._run_name, self._game_logger.run_dir)
        return result

    @property
    def run_dir(self) -> Path:
        return self._game_logger.run_dir

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _build_summary(self, result: GameResult, num_rejections: int) -> dict[str, Any]:
        """Flat summary of the final result."""
        return {
            "run_name": self._game_logger.run_name,
            "strategy": self._config.strategy.name,
            "initial_cash": result.initial_cash,
            "total_asset_value": result.total_asset_value,
            "diversification_bonus_pct": result.diversification_bonus_pct,
            "final_asset": result.final_asset,
            "profit_rate_pct": result.profit_rate_pct,
            "lifestyle_grade": result.lifestyle_grade.value,
            "investment_grade": result.investment_grade.value,
            "investment_style": result.investment_style.value,
            "achievements": [a.value for a in result.achievements],
            "total_trades": result.total_trades,
            "win_rate_pct": result.win_rate_pct,
            "total_fees": result.total_fees,
            "rejected_orders": num_rejections,
        }
