from __future__ import annotations

import logging
from pathlib import Path

from ..models import Scenario
from .parser import parse_scenario_file

logger = logging.getLogger(__name__)


def find_scenario_files(scenarios_dir: str | Path) -> list[Path]:
    root = Path(scenarios_dir)
    if not root.is_dir():
        logger.debug(f"Scenarios directory {root} does not exist")
        return []
    return sorted(p for p in root.rglob("*.md") if p.is_file())


def load_all_scenarios(scenarios_dir: str | Path) -> list[Scenario]:
    """Recursively load every scenario file below scenarios_dir, sorted by path."""
    return [parse_scenario_file(path, scenarios_dir) for path in find_scenario_files(scenarios_dir)]
