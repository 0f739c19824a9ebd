"""
Project configuration.

Read from ``litmus.toml`` in the project directory, or from the
``[tool.litmus]`` table of ``pyproject.toml``:

    base_url = "http://localhost:3000"
    dev_command = "npm run dev"

    [loop]
    max_iterations = 10
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    CONFIG_FILENAME,
    DEFAULT_ACTION_TIMEOUT_MS,
    DEFAULT_AGENT_COMMAND,
    DEFAULT_AGENT_TIMEOUT_S,
    DEFAULT_ALLOWED_TOOLS,
    DEFAULT_ARTIFACTS_DIR,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MODEL,
    DEFAULT_SCENARIOS_DIR,
    DEFAULT_SERVER_PORT,
    SERVER_READY_TIMEOUT_S,
)
from .exceptions import ConfigError


class LoopConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_iterations: int = Field(DEFAULT_MAX_ITERATIONS, ge=1)
    model: str | None = None
    agent_command: str = DEFAULT_AGENT_COMMAND
    agent_timeout_s: float = Field(DEFAULT_AGENT_TIMEOUT_S, gt=0)
    allowed_tools: str = DEFAULT_ALLOWED_TOOLS
    stagnation_window: int = Field(5, ge=1)
    regression_margin: int = Field(3, ge=0)
    min_history: int = Field(3, ge=1)
    stuck_window: int = Field(3, ge=1)
    oscillation_period: int = Field(4, ge=3)


class LitmusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str
    dev_command: str | None = None
    setup: str | None = None
    model: str = DEFAULT_MODEL
    scenarios_dir: str = DEFAULT_SCENARIOS_DIR
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR
    action_timeout_ms: int = Field(DEFAULT_ACTION_TIMEOUT_MS, gt=0)
    server_timeout_s: float = Field(SERVER_READY_TIMEOUT_S, gt=0)
    page_snapshot: bool = False
    loop: LoopConfig = Field(default_factory=LoopConfig)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("base_url must be an http(s) URL, e.g. http://localhost:3000")
        return value.rstrip("/")

    @property
    def port(self) -> int:
        return urlparse(self.base_url).port or DEFAULT_SERVER_PORT

    @property
    def loop_model(self) -> str:
        return self.loop.model or self.model


def _read_raw_config(project_dir: Path) -> dict | None:
    config_path = project_dir / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, "rb") as f:
            return tomllib.load(f)

    pyproject = project_dir / "pyproject.toml"
    if pyproject.exists():
        with open(pyproject, "rb") as f:
            return tomllib.load(f).get("tool", {}).get("litmus")
    return None


def load_config(project_dir: str | Path = ".") -> LitmusConfig:
    """
    Load and validate the project configuration.

    Raises:
        ConfigError: no config found, invalid TOML, or invalid values
    """
    project_dir = Path(project_dir)
    try:
        raw = _read_raw_config(project_dir)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse litmus config: {e}") from e

    if raw is None:
        raise ConfigError(
            f"No litmus config found in {project_dir.resolve()}. Run `litmus init` to create one."
        )

    try:
        return LitmusConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid litmus config:\n{e}") from e
