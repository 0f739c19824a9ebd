"""
Translate a natural-language scenario into an ordered list of browser actions
with a single language model call.
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from ..constants import DEFAULT_MODEL
from ..exceptions import TranslationError
from ..llm_provider import LLMProvider
from ..models import ACTION_LIST, Action, Scenario

TRANSLATION_SYSTEM = """You are a Playwright test translator. Given a behavioral scenario written in natural language, output a JSON array of Playwright actions.

Each action must be one of these types:

- navigate: Go to a URL. { "type": "navigate", "url": "/path", "description": "..." }
- click: Click an element. { "type": "click", "selector": "role/text selector", "description": "..." }
- fill: Type into an input. { "type": "fill", "selector": "role/text selector", "value": "text to type", "description": "..." }
- select: Select from a dropdown. { "type": "select", "selector": "role/text selector", "value": "option", "description": "..." }
  For custom dropdowns (button + options, not native <select>), use TWO actions: a click on the trigger button, then a click on the option text.
- wait: Wait for something. { "type": "wait", "selector": "role/text selector or milliseconds", "description": "..." }
- assert: Verify something is visible/correct. { "type": "assert", "selector": "role/text selector", "value": "expected text (optional)", "description": "..." }
- keyboard: Press a key. { "type": "keyboard", "key": "Enter", "description": "..." }

For selectors, prefer accessible selectors:
- by role: 'button[name="Submit"]', 'link[name="Home"]', 'role=heading[name="Dashboard"]'
- by text: 'text=Welcome back' or a regular expression 'text=/welcome/i'
- by placeholder: 'placeholder=Enter your email'
- by label: 'label=Email address'
- by test id: 'testid=submit-button'
- CSS as last resort: '.class-name', '#id'

IMPORTANT rules:
- When asserting text exists, use selectors that target VISIBLE elements only. Avoid matching hidden elements like SVG <title> tags.
- For table content assertions, prefer targeting table cells (td, th) or rows (tr) rather than broad text searches.
- If a page snapshot is provided, use it to choose selectors that match the ACTUAL DOM structure.
- For custom dropdowns/filters (button + role="option" divs), do NOT use "select" type. Instead use "click" on the trigger, then "click" on the option.
- For native <select> elements, use the "select" type.

Return ONLY a JSON array of actions. No other text."""

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def build_translation_prompt(
    scenario: Scenario, base_url: str, page_snapshot: str | None = None
) -> str:
    context = "\n".join(f"- {c}" for c in scenario.context)
    steps = "\n".join(f"{i}. {s}" for i, s in enumerate(scenario.steps, start=1))
    expected = "\n".join(f"- {e}" for e in scenario.expected)

    snapshot_section = ""
    if page_snapshot:
        snapshot_section = (
            "\n## Page Structure (actual DOM snapshot)\n"
            f"```\n{page_snapshot}\n```\n\n"
            "Use this snapshot to choose selectors that match the real page structure. "
            "Prefer targeting visible text content in semantic elements (headings, table cells, "
            "buttons, labels) rather than SVG internals or hidden elements.\n"
        )

    return (
        f"## Scenario: {scenario.name}\n\n"
        f"## Context (preconditions)\n{context}\n\n"
        f"## Steps to execute\n{steps}\n\n"
        f"## Expected outcomes to verify\n{expected}\n\n"
        f"## Base URL: {base_url}\n"
        f"{snapshot_section}\n"
        "Translate ALL steps AND expected outcomes into Playwright actions. "
        "Start by navigating to the appropriate page. End with assert actions for each "
        "expected outcome. Return ONLY the JSON array."
    )


def strip_code_fence(text: str) -> str:
    text = text.strip()
    match = _CODE_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def parse_actions(raw_response: str, scenario_name: str) -> list[Action]:
    """
    Decode a model response into validated actions.

    Raises:
        TranslationError: not JSON, not an array, or an element with the wrong shape
    """
    try:
        payload = json.loads(strip_code_fence(raw_response))
    except json.JSONDecodeError as e:
        raise TranslationError(scenario_name, raw_response, reason=f"invalid JSON: {e}") from e

    if not isinstance(payload, list):
        raise TranslationError(scenario_name, raw_response, reason="response is not a JSON array")

    try:
        return ACTION_LIST.validate_python(payload)
    except ValidationError as e:
        raise TranslationError(
            scenario_name, raw_response, reason=f"invalid action: {e.errors()[0]['msg']}"
        ) from e


class ActionTranslator:
    def __init__(self, llm: LLMProvider, model: str | None = None, max_tokens: int = 4096):
        self.llm = llm
        self.model = model or DEFAULT_MODEL
        self.max_tokens = max_tokens

    def translate(
        self, scenario: Scenario, base_url: str, page_snapshot: str | None = None
    ) -> list[Action]:
        prompt = build_translation_prompt(scenario, base_url, page_snapshot)
        response = self.llm.generate(
            TRANSLATION_SYSTEM,
            prompt,
            model=self.model,
            max_tokens=self.max_tokens,
        )
        return parse_actions(response.content, scenario.name)
