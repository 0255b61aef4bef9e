"""Name -> strategy class lookup used by the runner and the CLI.

Strategies register themselves with ``@register("name")`` when
``strategies.builtin`` is imported; the lookup functions import it on first
use.  ``create_strategy`` also checks the config's ``options`` against the
class's ``options_model`` so a typo in a YAML file fails before the game
starts::

    strategy = create_strategy(StrategyConfig(name="diversified", options={"invest_pct": 50}))
"""

from __future__ import annotations

from pydantic import ValidationError

from models.config import StrategyConfig
from strategies.base import Strategy

_strategies: dict[str, type[Strategy]] = {}


def register(name: str):
    """Class decorator: make a ``Strategy`` subclass available as *name*."""

    def _add(cls: type[Strategy]) -> type[Strategy]:
        existing = _strategies.get(name)
        if existing is not None:
            raise ValueError(
                f"Strategy name '{name}' is taken by {existing.__qualname__}; "
                f"cannot register {cls.__qualname__}."
            )
        cls.name = name
        _strategies[name] = cls
        return cls

    return _add


def available_strategies() -> list[str]:
    _load_builtins()
    return sorted(_strategies)


def strategy_class(name: str) -> type[Strategy]:
    """Registered class for *name*; ``KeyError`` listing the choices otherwise."""
    _load_builtins()
    try:
        return _strategies[name]
    except KeyError:
        choices = ", ".join(sorted(_strategies)) or "(none)"
        raise KeyError(f"Unknown strategy '{name}'. Available: {choices}.") from None


def create_strategy(config: StrategyConfig) -> Strategy:
    """Build the strategy named by *config* with validated options.

    Raises ``KeyError`` for an unknown name and ``ValueError`` for options
    the strategy does not accept or values out of range.
    """
    cls = strategy_class(config.name)
    try:
        options = cls.options_model.model_validate(config.options)
    except ValidationError as exc:
        raise ValueError(f"Invalid options for strategy '{config.name}': {exc}") from exc
    return cls(config, options)


def _load_builtins() -> None:
    import strategies.builtin  # noqa: F401
