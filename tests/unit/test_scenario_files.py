from __future__ import annotations

import logging

from litmus.models import ScenarioInput, ScenarioMetadata
from litmus.scenarios import (
    format_scenario,
    load_all_scenarios,
    parse_scenario,
    parse_scenario_file,
    slugify,
    write_scenario_file,
)

RAW = """---
priority: high
type: edge-case
confidence: inferred
---
# Auth — Login with wrong password

## Context
- A user account exists
* The user is logged out

## Steps
1. Open the login page
2) Type the wrong password
- Press submit

## Expected
- An error message is shown

- The user stays on the login page
"""


def make_input(**overrides) -> ScenarioInput:
    data = dict(
        name="Create a todo",
        category="todos",
        context=["The list is empty"],
        steps=["Open the app", "Type 'milk' into the new todo field", "Press Enter"],
        expected=["'milk' appears in the list", "The counter shows 1 item left"],
        metadata=ScenarioMetadata(priority="low", type="happy-path", confidence="expanded"),
    )
    data.update(overrides)
    return ScenarioInput(**data)


def test_parse_reads_metadata_heading_and_sections(tmp_path) -> None:
    path = tmp_path / "auth" / "login-wrong-password.md"
    scenario = parse_scenario(RAW, path, tmp_path)

    assert scenario.name == "Login with wrong password"
    assert scenario.category == "auth"
    assert scenario.file_path == str(path)
    assert scenario.metadata == ScenarioMetadata(
        priority="high", type="edge-case", confidence="inferred"
    )
    assert scenario.context == ["A user account exists", "The user is logged out"]
    assert scenario.steps == ["Open the login page", "Type the wrong password", "Press submit"]
    assert scenario.expected == ["An error message is shown", "The user stays on the login page"]
    assert scenario.raw == RAW


def test_parse_defaults_without_frontmatter_or_heading(tmp_path) -> None:
    raw = "## Steps\n1. Do the thing\n"
    scenario = parse_scenario(raw, tmp_path / "plain-name.md", tmp_path)

    assert scenario.name == "plain-name"
    assert scenario.category == "general"
    assert scenario.metadata == ScenarioMetadata()
    assert scenario.steps == ["Do the thing"]
    assert scenario.context == []
    assert scenario.expected == []


def test_parse_normalizes_metadata_case(tmp_path) -> None:
    raw = "---\npriority: High\ntype: Edge-Case\nconfidence: DIRECT\n---\n# X\n"
    scenario = parse_scenario(raw, tmp_path / "x.md", tmp_path)
    assert scenario.metadata == ScenarioMetadata(
        priority="high", type="edge-case", confidence="direct"
    )


def test_parse_falls_back_to_defaults_on_unknown_metadata_values(tmp_path, caplog) -> None:
    raw = "---\npriority: urgent\ntype: edge-case\n---\n# X\n"
    with caplog.at_level(logging.WARNING, logger="litmus.scenarios.parser"):
        scenario = parse_scenario(raw, tmp_path / "x.md", tmp_path)

    assert scenario.metadata == ScenarioMetadata(priority="medium", type="edge-case")
    assert "invalid priority 'urgent'" in caplog.text


def test_parse_file_replaces_undecodable_bytes(tmp_path, caplog) -> None:
    path = tmp_path / "legacy.md"
    path.write_bytes("# Café menu\n\n## Steps\n1. Open the menu\n".encode("latin-1"))
    with caplog.at_level(logging.WARNING, logger="litmus.scenarios.parser"):
        scenario = parse_scenario_file(path, tmp_path)

    assert scenario.name == "Caf\ufffd menu"
    assert scenario.steps == ["Open the menu"]
    assert "not valid UTF-8" in caplog.text


def test_nested_directories_flatten_to_one_category(tmp_path) -> None:
    path = tmp_path / "billing" / "invoices" / "pay.md"
    scenario = parse_scenario(RAW, path, tmp_path)
    assert scenario.category == "billing-invoices"
    assert "/" not in scenario.category


def test_write_then_read_preserves_ordered_content(tmp_path) -> None:
    original = make_input()
    path = write_scenario_file(original, tmp_path)

    assert path == tmp_path / "todos" / "create-a-todo.md"
    loaded = parse_scenario_file(path, tmp_path)

    assert loaded.name == original.name
    assert loaded.category == original.category
    assert loaded.context == original.context
    assert loaded.steps == original.steps
    assert loaded.expected == original.expected
    assert loaded.metadata == original.metadata


def test_round_trip_ignores_bullet_style(tmp_path) -> None:
    original = make_input()
    text = format_scenario(original)
    # swap every marker style; content must not change
    restyled = (
        text.replace("- The list is empty", "* The list is empty")
        .replace("1. Open the app", "- Open the app")
        .replace("2. Type", "2) Type")
    )
    a = parse_scenario(text, tmp_path / "todos" / "a.md", tmp_path)
    b = parse_scenario(restyled, tmp_path / "todos" / "a.md", tmp_path)
    assert (a.context, a.steps, a.expected) == (b.context, b.steps, b.expected)


def test_round_trip_keeps_separator_inside_name(tmp_path) -> None:
    original = make_input(name="Checkout — guest user", category="cart")
    path = write_scenario_file(original, tmp_path)

    assert "# Cart — Checkout — guest user" in path.read_text(encoding="utf-8")
    assert parse_scenario_file(path, tmp_path).name == "Checkout — guest user"


def test_format_uses_numbered_steps_and_capitalized_category() -> None:
    text = format_scenario(make_input())
    assert "# Todos — Create a todo" in text
    assert "1. Open the app\n2. Type 'milk' into the new todo field\n3. Press Enter" in text
    assert text.startswith("---\npriority: low\ntype: happy-path\nconfidence: expanded\n---\n")


def test_slugify() -> None:
    assert slugify("Login: wrong  password!") == "login-wrong-password"
    assert slugify("--Already-Slugged--") == "already-slugged"


def test_load_all_scenarios_is_recursive_and_sorted(tmp_path) -> None:
    write_scenario_file(make_input(name="Zeta", category="b"), tmp_path)
    write_scenario_file(make_input(name="Alpha", category="b"), tmp_path)
    write_scenario_file(make_input(name="Middle", category="a"), tmp_path)
    (tmp_path / "notes.txt").write_text("not a scenario")

    scenarios = load_all_scenarios(tmp_path)

    assert [s.name for s in scenarios] == ["Middle", "Alpha", "Zeta"]
    assert [s.category for s in scenarios] == ["a", "b", "b"]


def test_load_all_scenarios_missing_dir_is_empty(tmp_path) -> None:
    assert load_all_scenarios(tmp_path / "nope") == []
