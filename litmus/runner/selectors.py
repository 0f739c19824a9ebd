"""
Selector classification and resolution.

A selector string emitted by the translator is classified into exactly one
resolution strategy, in priority order:

1. ROLE        ``role=heading`` / ``role=heading[name="Home"]``
2. ROLE_NAME   ``button[name="Submit"]`` (fixed role set)
3. TEXT        ``text=Welcome`` / ``text=/welcome/i``
4. REGEX       ``/welcome/i`` / ``getByText(/welcome/i)``
5. ATTRIBUTE   ``placeholder=...`` / ``label=...`` / ``testid=...``
6. STRUCTURAL  anything else, handed to ``page.locator``

Every resolved locator is narrowed with ``.first`` so ambiguous matches do
not raise strict mode violations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from re import Pattern
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page


class SelectorKind(str, Enum):
    ROLE = "role"
    ROLE_NAME = "role_name"
    TEXT = "text"
    REGEX = "regex"
    ATTRIBUTE = "attribute"
    STRUCTURAL = "structural"


NAMED_ROLES = (
    "button",
    "link",
    "textbox",
    "checkbox",
    "radio",
    "heading",
    "img",
    "dialog",
    "alert",
    "navigation",
    "main",
    "form",
    "region",
    "list",
    "listitem",
    "table",
    "row",
    "cell",
    "option",
    "combobox",
    "menu",
    "menuitem",
)

ATTRIBUTE_PREFIXES = ("placeholder", "label", "testid")

_ROLE_RE = re.compile(r"^role=(\w+)(?:\[name=['\"](.+?)['\"]\])?$")
_ROLE_NAME_RE = re.compile(rf"^({'|'.join(NAMED_ROLES)})\[name=['\"](.+?)['\"]\]$")
_REGEX_RE = re.compile(r"^/(.+?)/([a-z]*)$")
_GET_BY_TEXT_RE = re.compile(r"^getByText\(/(.+?)/([a-z]*)\)$")

_JS_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
_IGNORED_JS_FLAGS = set("guy")


@dataclass(frozen=True)
class ParsedSelector:
    kind: SelectorKind
    raw: str
    role: str | None = None
    name: str | None = None
    text: str | Pattern[str] | None = None
    attribute: str | None = None
    css: str | None = None


def compile_js_regex(pattern: str, flags: str) -> Pattern[str] | None:
    """Compile a JavaScript-style /pattern/flags literal; None if it is not a valid regex."""
    re_flags = 0
    for flag in flags:
        if flag in _JS_FLAGS:
            re_flags |= _JS_FLAGS[flag]
        elif flag not in _IGNORED_JS_FLAGS:
            return None
    try:
        return re.compile(pattern, re_flags)
    except re.error:
        return None


def _as_regex(text: str) -> Pattern[str] | None:
    match = _REGEX_RE.match(text)
    if not match:
        return None
    return compile_js_regex(match.group(1), match.group(2))


def classify_selector(selector: str) -> ParsedSelector:
    """Classify a selector string. Total: every string maps to exactly one kind."""
    match = _ROLE_RE.match(selector)
    if match:
        return ParsedSelector(SelectorKind.ROLE, selector, role=match.group(1), name=match.group(2))

    match = _ROLE_NAME_RE.match(selector)
    if match:
        return ParsedSelector(
            SelectorKind.ROLE_NAME, selector, role=match.group(1), name=match.group(2)
        )

    if selector.startswith("text="):
        value = selector[len("text="):]
        return ParsedSelector(SelectorKind.TEXT, selector, text=_as_regex(value) or value)

    pattern = _as_regex(selector)
    if pattern is None:
        match = _GET_BY_TEXT_RE.match(selector)
        if match:
            pattern = compile_js_regex(match.group(1), match.group(2))
    if pattern is not None:
        return ParsedSelector(SelectorKind.REGEX, selector, text=pattern)

    for prefix in ATTRIBUTE_PREFIXES:
        if selector.startswith(f"{prefix}="):
            return ParsedSelector(
                SelectorKind.ATTRIBUTE,
                selector,
                attribute=prefix,
                text=selector[len(prefix) + 1:],
            )

    # "timeout=500" is not a selector; models emit it for plain waits
    if selector.startswith(("timeout=", "timeout:")):
        return ParsedSelector(SelectorKind.STRUCTURAL, selector, css="body")

    return ParsedSelector(SelectorKind.STRUCTURAL, selector, css=selector)


def resolve_locator(page: "Page", selector: str) -> "Locator":
    parsed = classify_selector(selector)
    kind = parsed.kind

    if kind in (SelectorKind.ROLE, SelectorKind.ROLE_NAME):
        if parsed.name is not None:
            return page.get_by_role(parsed.role, name=parsed.name).first
        return page.get_by_role(parsed.role).first

    if kind in (SelectorKind.TEXT, SelectorKind.REGEX):
        return page.get_by_text(parsed.text).first

    if kind is SelectorKind.ATTRIBUTE:
        if parsed.attribute == "placeholder":
            return page.get_by_placeholder(parsed.text).first
        if parsed.attribute == "label":
            return page.get_by_label(parsed.text).first
        return page.get_by_test_id(parsed.text).first

    return page.locator(parsed.css).first
