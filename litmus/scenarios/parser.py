"""
Parse scenario markdown files into Scenario models.

Expected format:

    ---
    priority: high
    type: happy-path
    confidence: direct
    ---
    # Category — Scenario Name

    ## Context
    - precondition 1

    ## Steps
    1. Step one
    2. Step two

    ## Expected
    - Expected outcome 1
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import ValidationError

from ..models import Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"\A\s*---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)
_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")

HEADING_SEPARATOR = "—"


def _split_frontmatter(raw: str) -> tuple[dict[str, str], str]:
    match = _FRONTMATTER_RE.match(raw)
    if not match:
        return {}, raw
    fields: dict[str, str] = {}
    for line in match.group(1).splitlines():
        if ":" not in line or line.lstrip().startswith("#"):
            continue
        key, _, value = line.partition(":")
        fields[key.strip()] = value.strip().strip("'\"")
    return fields, raw[match.end():]


def _extract_section(content: str, section_name: str) -> list[str]:
    pattern = re.compile(
        rf"^##\s+{re.escape(section_name)}\s*$\n?(.*?)(?=^##\s|\Z)",
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )
    match = pattern.search(content)
    if not match:
        return []
    items = []
    for line in match.group(1).strip().splitlines():
        item = _LIST_MARKER_RE.sub("", line, count=1).strip()
        if item:
            items.append(item)
    return items


def category_for(file_path: Path, scenarios_dir: Path) -> str:
    """Category is the directory below the scenarios root, flattened to one segment."""
    try:
        parent = file_path.resolve().parent.relative_to(scenarios_dir.resolve())
    except ValueError:
        return "general"
    if not parent.parts:
        return "general"
    return "-".join(parent.parts)


def _parse_metadata(frontmatter: dict[str, str], file_path: Path) -> ScenarioMetadata:
    values = {}
    for field in ScenarioMetadata.model_fields:
        if field not in frontmatter:
            continue
        value = frontmatter[field].lower()
        try:
            ScenarioMetadata(**{field: value})
        except ValidationError:
            default = ScenarioMetadata.model_fields[field].default
            logger.warning(
                f"{file_path}: invalid {field} {frontmatter[field]!r}, using {default!r}"
            )
            continue
        values[field] = value
    return ScenarioMetadata(**values)


def parse_scenario(raw: str, file_path: str | Path, scenarios_dir: str | Path) -> Scenario:
    file_path = Path(file_path)
    frontmatter, content = _split_frontmatter(raw)
    metadata = _parse_metadata(frontmatter, file_path)

    heading_match = _HEADING_RE.search(content)
    heading = heading_match.group(1).strip() if heading_match else file_path.stem
    # "Category — Name" headings carry the name after the first separator
    parts = [p.strip() for p in heading.split(HEADING_SEPARATOR, 1)]
    name = parts[1] if len(parts) > 1 else parts[0]

    return Scenario(
        name=name,
        category=category_for(file_path, Path(scenarios_dir)),
        file_path=str(file_path),
        context=_extract_section(content, "Context"),
        steps=_extract_section(content, "Steps"),
        expected=_extract_section(content, "Expected"),
        metadata=metadata,
        raw=raw,
    )


def parse_scenario_file(file_path: str | Path, scenarios_dir: str | Path) -> Scenario:
    data = Path(file_path).read_bytes()
    try:
        raw = data.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning(f"{file_path} is not valid UTF-8 ({e.reason}), undecodable bytes replaced")
        raw = data.decode("utf-8", errors="replace")
    return parse_scenario(raw, file_path, scenarios_dir)
