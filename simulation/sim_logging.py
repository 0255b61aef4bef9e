"""Game output logging: persists the GameLog and a flat summary.

The output directory structure is::

    {output_dir}/{run_name}/
    ├── config.yaml
    ├── game_log.json
    └── summary.json
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

import yaml

from models.config import GameConfig
from models.log import GameLog

logger = logging.getLogger(__name__)


def run_name_from_config_path(config_path: str | Path) -> str:
    """Derive a run name from the configuration file path (stem without extension)."""
    return Path(config_path).stem


class GameLogger:
    """Manages on-disk output for one game run.

    Call ``init_run`` once at the start and ``finalize`` with the completed
    ``GameLog`` at the end.
    """

    def __init__(self, output_dir: str | Path, config: GameConfig, run_name: str) -> None:
        self._run_dir = _unique_run_dir(Path(output_dir), run_name)
        self._config = config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_run(self, config_yaml_path: str | Path | None = None) -> None:
        """Create the output directory and copy (or dump) the config."""
        self._run_dir.mkdir(parents=True, exist_ok=True)
        dest = self._run_dir / "config.yaml"
        if config_yaml_path is not None:
            shutil.copy2(config_yaml_path, dest)
            logger.info("Copied config to %s", dest)
        else:
            dest.write_text(
                yaml.safe_dump(self._config.model_dump(mode="json"), sort_keys=False),
                encoding="utf-8",
            )
            logger.info("Wrote effective config to %s", dest)

    def finalize(self, game_log: GameLog, summary: dict[str, Any] | None = None) -> None:
        """Write the game log and optional summary."""
        _write_json(self._run_dir / "game_log.json", game_log.model_dump(mode="json"))
        if summary is not None:
            _write_json(self._run_dir / "summary.json", summary)
        logger.info("Game log finalized at %s", self._run_dir)

    @property
    def run_dir(self) -> Path:
        return self._run_dir

    @property
    def run_name(self) -> str:
        return self._run_dir.name


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _unique_run_dir(output_dir: Path, run_name: str) -> Path:
    """Return a run directory that does not already exist.

    ``output_dir/run_name`` is used when free, otherwise an incrementing
    suffix is appended: ``run_name_001``, ``run_name_002``, etc.
    """
    candidate = output_dir / run_name
    if not candidate.exists():
        return candidate

    idx = 1
    while True:
        candidate = output_dir / f"{run_name}_{idx:03d}"
        if not candidate.exists():
            return candidate
        idx += 1


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty-printed JSON to *path*."""
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
