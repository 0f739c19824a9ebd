from __future__ import annotations

import pytest

from litmus.config import LitmusConfig, load_config
from litmus.exceptions import ConfigError


def test_load_from_litmus_toml(tmp_path) -> None:
    (tmp_path / "litmus.toml").write_text(
        'base_url = "http://localhost:5173/"\n'
        'dev_command = "npm run dev"\n'
        "page_snapshot = true\n"
        "\n"
        "[loop]\n"
        "max_iterations = 4\n"
        'model = "claude-opus-4-1"\n'
    )

    config = load_config(tmp_path)

    assert config.base_url == "http://localhost:5173"
    assert config.port == 5173
    assert config.dev_command == "npm run dev"
    assert config.page_snapshot is True
    assert config.scenarios_dir == "specs/scenarios"
    assert config.loop.max_iterations == 4
    assert config.loop_model == "claude-opus-4-1"


def test_load_from_pyproject_tool_table(tmp_path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "app"\n\n[tool.litmus]\nbase_url = "https://staging.example.com"\n'
    )

    config = load_config(tmp_path)

    assert config.base_url == "https://staging.example.com"
    assert config.port == 3000
    assert config.loop_model == config.model


def test_litmus_toml_wins_over_pyproject(tmp_path) -> None:
    (tmp_path / "litmus.toml").write_text('base_url = "http://localhost:4000"\n')
    (tmp_path / "pyproject.toml").write_text('[tool.litmus]\nbase_url = "http://localhost:9999"\n')
    assert load_config(tmp_path).port == 4000


def test_missing_config(tmp_path) -> None:
    with pytest.raises(ConfigError, match="litmus init"):
        load_config(tmp_path)
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "app"\n')
    with pytest.raises(ConfigError, match="No litmus config"):
        load_config(tmp_path)


def test_invalid_toml(tmp_path) -> None:
    (tmp_path / "litmus.toml").write_text("base_url = \n")
    with pytest.raises(ConfigError, match="Could not parse"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "body",
    [
        'base_url = "localhost:3000"\n',
        'base_url = "ftp://host"\n',
        'base_url = "http://x"\nunknown_key = 1\n',
        'base_url = "http://x"\n[loop]\nmax_iterations = 0\n',
        'base_url = "http://x"\n[loop]\noscillation_period = 2\n',
        'dev_command = "npm start"\n',
    ],
)
def test_invalid_values(tmp_path, body) -> None:
    (tmp_path / "litmus.toml").write_text(body)
    with pytest.raises(ConfigError, match="Invalid litmus config"):
        load_config(tmp_path)


def test_defaults() -> None:
    config = LitmusConfig(base_url="http://127.0.0.1:8080")
    assert config.action_timeout_ms == 10_000
    assert config.server_timeout_s == 90.0
    assert config.artifacts_dir == ".litmus"
    assert config.loop.max_iterations == 15
    assert config.loop.agent_command == "claude"
    assert (config.loop.min_history, config.loop.stuck_window) == (3, 3)
    assert config.loop.oscillation_period == 4


def test_circuit_breaker_thresholds_load_from_loop_table(tmp_path) -> None:
    (tmp_path / "litmus.toml").write_text(
        'base_url = "http://localhost:3000"\n'
        "\n"
        "[loop]\n"
        "min_history = 2\n"
        "stagnation_window = 8\n"
        "regression_margin = 1\n"
        "stuck_window = 4\n"
        "oscillation_period = 6\n"
    )

    loop = load_config(tmp_path).loop

    assert loop.min_history == 2
    assert loop.stagnation_window == 8
    assert loop.regression_margin == 1
    assert loop.stuck_window == 4
    assert loop.oscillation_period == 6
