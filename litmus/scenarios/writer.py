from __future__ import annotations

import re
from pathlib import Path

from ..models import ScenarioInput
from .parser import HEADING_SEPARATOR


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def format_scenario(scenario: ScenarioInput) -> str:
    meta = scenario.metadata
    lines = [
        "---",
        f"priority: {meta.priority}",
        f"type: {meta.type}",
        f"confidence: {meta.confidence}",
        "---",
        "",
        f"# {scenario.category[:1].upper()}{scenario.category[1:]} {HEADING_SEPARATOR} {scenario.name}",
        "",
        "## Context",
    ]
    lines.extend(f"- {item}" for item in scenario.context)
    lines.extend(["", "## Steps"])
    lines.extend(f"{i}. {step}" for i, step in enumerate(scenario.steps, start=1))
    lines.extend(["", "## Expected"])
    lines.extend(f"- {item}" for item in scenario.expected)
    lines.append("")
    return "\n".join(lines)


def write_scenario_file(scenario: ScenarioInput, scenarios_dir: str | Path) -> Path:
    """Write a scenario to <scenarios_dir>/<category>/<slug>.md and return the path."""
    file_path = Path(scenarios_dir) / scenario.category / f"{slugify(scenario.name)}.md"
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(format_scenario(scenario), encoding="utf-8")
    return file_path
