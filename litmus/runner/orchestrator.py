"""
Verification runs: load scenarios, make sure the app is up, translate and
execute every scenario, aggregate a summary.

One failing scenario never stops the run: translation and execution errors
are turned into failed results. Input errors (no scenarios, empty filter) and
environment errors (setup command, server) abort the run.
"""

from __future__ import annotations

import asyncio
import logging
import re
import subprocess
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from ..config import LitmusConfig
from ..dev_server import DevServer
from ..exceptions import NoMatchError, NoScenariosError, ScenarioError
from ..failure_artifacts import RunArtifacts
from ..models import Action, Scenario, VerificationResult, VerificationSummary
from ..scenarios import load_all_scenarios
from .executor import BrowserManager, ExecutorOptions, ScenarioExecutor

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, int, VerificationResult], None]


class Translator(Protocol):
    def translate(
        self, scenario: Scenario, base_url: str, page_snapshot: str | None = None
    ) -> list[Action]: ...


def filter_scenarios(scenarios: list[Scenario], pattern: str) -> list[Scenario]:
    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ScenarioError(f'Invalid filter pattern "{pattern}": {e}') from e
    return [
        s
        for s in scenarios
        if regex.search(s.name) or regex.search(s.category) or regex.search(s.file_path)
    ]


def run_setup_command(command: str, cwd: Path) -> None:
    """Run the one-shot setup command; a non-zero exit propagates CalledProcessError."""
    logger.info(f"Running setup: {command}")
    try:
        subprocess.run(command, shell=True, cwd=str(cwd), capture_output=True, text=True, check=True)
    except subprocess.CalledProcessError as e:
        logger.error(f"Setup failed (exit {e.returncode}): {(e.stderr or e.stdout or '').strip()[:500]}")
        raise
    logger.info("Setup complete")


class VerificationRunner:
    def __init__(
        self,
        config: LitmusConfig,
        translator: Translator,
        *,
        project_dir: str | Path = ".",
        browser_manager: BrowserManager | None = None,
        dev_server: DevServer | None = None,
        executor: Any | None = None,
        artifacts: RunArtifacts | None = None,
    ) -> None:
        self.config = config
        self.translator = translator
        self.project_dir = Path(project_dir)
        self.browser_manager = browser_manager or BrowserManager()
        self.dev_server = dev_server or DevServer(
            cwd=self.project_dir, port=config.port, ready_timeout_s=config.server_timeout_s
        )
        self.artifacts = artifacts or RunArtifacts(self.project_dir / config.artifacts_dir)
        self.executor = executor or ScenarioExecutor(
            self.browser_manager,
            ExecutorOptions(
                base_url=config.base_url,
                screenshot_dir=self.artifacts.screenshot_dir,
                timeout_ms=config.action_timeout_ms,
            ),
        )

    @property
    def scenarios_dir(self) -> Path:
        return self.project_dir / self.config.scenarios_dir

    def load_scenarios(self, pattern: str | None = None) -> list[Scenario]:
        scenarios = load_all_scenarios(self.scenarios_dir)
        if not scenarios:
            raise NoScenariosError(self.config.scenarios_dir)
        if pattern:
            scenarios = filter_scenarios(scenarios, pattern)
            if not scenarios:
                raise NoMatchError(pattern)
        return scenarios

    async def run(
        self, pattern: str | None = None, on_result: ResultCallback | None = None
    ) -> VerificationSummary:
        start = time.time()
        scenarios = self.load_scenarios(pattern)
        logger.info(f"Found {len(scenarios)} scenarios")

        if self.config.setup:
            run_setup_command(self.config.setup, self.project_dir)

        logger.info(f"Checking server at {self.config.base_url}...")
        await self.dev_server.ensure(self.config.base_url, self.config.dev_command)
        logger.info(f"Server ready at {self.config.base_url}")

        results: list[VerificationResult] = []
        try:
            for index, scenario in enumerate(scenarios, start=1):
                result = await self._run_one(scenario)
                results.append(result)
                label = f"[{index}/{len(scenarios)}] {scenario.category}/{scenario.name}"
                if result.passed:
                    logger.info(f"{label} passed")
                else:
                    logger.info(f"{label} failed: {(result.actual or '')[:120]}")
                if on_result is not None:
                    on_result(index, len(scenarios), result)
        finally:
            await self.browser_manager.close()

        return VerificationSummary.from_results(results, int((time.time() - start) * 1000))

    async def _run_one(self, scenario: Scenario) -> VerificationResult:
        try:
            page_snapshot = None
            if self.config.page_snapshot:
                page_snapshot = await self.executor.capture_page_snapshot()
            loop = asyncio.get_running_loop()
            actions = await loop.run_in_executor(
                None, self.translator.translate, scenario, self.config.base_url, page_snapshot
            )
            return await self.executor.execute(scenario, actions)
        except Exception as e:
            logger.debug(f"Scenario {scenario.file_path} errored", exc_info=True)
            return VerificationResult(
                scenario=scenario,
                passed=False,
                step_results=[],
                console_logs=[],
                actual=str(e) or type(e).__name__,
                duration_ms=0,
            )
