"""
Coding agent boundary: build the per-iteration prompt and run the agent CLI
headless with a hard timeout.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..constants import DEFAULT_AGENT_COMMAND, DEFAULT_AGENT_TIMEOUT_S, DEFAULT_ALLOWED_TOOLS
from ..exceptions import CodingAgentUnavailableError
from ..failure_artifacts import RunArtifacts
from ..models import AgentResult

logger = logging.getLogger(__name__)


def build_coding_prompt(
    iteration: int,
    scenarios_path: str | Path,
    failure_report: str | None = None,
) -> str:
    parts = [
        f"# Coding Agent - Iteration {iteration}",
        "",
        "You are implementing a feature. Your goal is to make ALL behavioral scenarios pass.",
        "",
        "## Rules",
        "- Read the scenario files to understand what needs to be built",
        f"- NEVER modify scenario files in {scenarios_path} - they are the specification",
        "- Follow existing codebase patterns and conventions",
        "- Make the minimum changes necessary",
        "- If you need to install a package, do so",
        "- Focus on making failing scenarios pass without breaking passing ones",
        "",
        f"## Scenarios Directory: {scenarios_path}",
        "",
    ]

    if iteration == 1 or not failure_report:
        parts.extend(
            [
                "## Task",
                "Read all scenario files and implement the feature so that every scenario passes.",
                "Start by understanding the scenarios, then implement the code to make them all pass.",
            ]
        )
    else:
        parts.extend(
            [
                "## Previous Verification Results",
                "",
                failure_report,
                "",
                "## Task",
                "Fix the failing scenarios listed above. Read the failure details carefully,",
                "diagnose the root cause, and modify the code to make them pass.",
                "Do NOT break scenarios that were previously passing.",
            ]
        )

    return "\n".join(parts)


@dataclass
class CodingAgentOptions:
    command: str = DEFAULT_AGENT_COMMAND
    allowed_tools: str = DEFAULT_ALLOWED_TOOLS
    timeout_s: float = DEFAULT_AGENT_TIMEOUT_S
    model: str | None = None


class CodingAgent:
    def __init__(
        self,
        project_dir: str | Path,
        scenarios_dir: str | Path,
        artifacts: RunArtifacts,
        options: CodingAgentOptions | None = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.scenarios_path = (self.project_dir / scenarios_dir).resolve()
        self.artifacts = artifacts
        self.options = options or CodingAgentOptions()

    def is_available(self) -> bool:
        return shutil.which(self.options.command) is not None

    def _argv(self, prompt: str) -> list[str]:
        argv = [
            self.options.command,
            "-p",
            prompt,
            "--allowedTools",
            self.options.allowed_tools,
            "--output-format",
            "text",
        ]
        if self.options.model:
            argv.extend(["--model", self.options.model])
        return argv

    def invoke(self, iteration: int, failure_report: str | None = None) -> AgentResult:
        """
        Run the agent once. A non-zero exit or a timeout is reported in the
        result, not raised: the agent may still have made useful edits.

        Raises:
            CodingAgentUnavailableError: the agent executable is not on PATH
        """
        prompt = build_coding_prompt(iteration, self.scenarios_path, failure_report)
        self.artifacts.write_prompt(prompt)

        if not self.is_available():
            raise CodingAgentUnavailableError(
                f"Coding agent CLI `{self.options.command}` not found. "
                "Install it or ensure the command is available in your PATH."
            )

        logger.info("Coding agent working...")
        try:
            completed = subprocess.run(
                self._argv(prompt),
                cwd=str(self.project_dir),
                env={**os.environ, "CLAUDECODE": ""},
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.options.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.stdout or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            logger.warning(f"Coding agent timed out after {self.options.timeout_s:.0f}s")
            return AgentResult(
                success=False,
                output=f"{partial}\n[TIMED OUT after {self.options.timeout_s:.0f} seconds]",
                timed_out=True,
            )
        except OSError as e:
            logger.warning(f"Coding agent error: {e}")
            return AgentResult(success=False, output=str(e))

        if completed.returncode == 0:
            logger.info("Coding agent completed")
            return AgentResult(success=True, output=completed.stdout)

        logger.info(f"Coding agent completed (exit code {completed.returncode})")
        return AgentResult(success=False, output=completed.stdout or completed.stderr)
