"""
Execute translated actions against a live application with Playwright.

Each scenario runs in its own fresh browser context, closed on exit. The
underlying browser process is shared across scenarios (and loop iterations)
through an explicitly owned ``BrowserManager``.

Example:
    manager = BrowserManager()
    executor = ScenarioExecutor(
        manager,
        ExecutorOptions(base_url="http://localhost:3000", screenshot_dir=Path(".litmus/failures")),
    )
    try:
        result = await executor.execute(scenario, actions)
    finally:
        await manager.close()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..constants import (
    DEFAULT_ACTION_TIMEOUT_MS,
    DEFAULT_VIEWPORT,
    DEFAULT_WAIT_MS,
    PAGE_SNAPSHOT_MAX_CHARS,
)
from ..exceptions import ActionError, AssertionMismatchError
from ..models import (
    Action,
    AssertAction,
    ClickAction,
    FillAction,
    KeyboardAction,
    NavigateAction,
    Scenario,
    SelectAction,
    StepResult,
    VerificationResult,
    WaitAction,
)
from ..scenarios.writer import slugify
from .selectors import resolve_locator

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)

REPORTED_LOG_LEVELS = ("[error]", "[warning]")


class BrowserManager:
    """
    Lazily launched, process-wide Chromium handle.

    Only the runner and the iteration loop start or stop it. ``close()`` is
    idempotent; the next ``acquire()`` relaunches.
    """

    def __init__(self, headed: bool = False) -> None:
        self.headed = headed
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        if self.is_open:
            return self._browser
        if self._playwright is None:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
        logger.debug(f"Launching chromium (headed={self.headed})")
        self._browser = await self._playwright.chromium.launch(headless=not self.headed)
        return self._browser

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing browser: {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.debug(f"Ignoring error while stopping playwright: {e}")


@dataclass
class ExecutorOptions:
    base_url: str
    screenshot_dir: Path
    timeout_ms: int = DEFAULT_ACTION_TIMEOUT_MS


def resolve_url(url: str, base_url: str) -> str:
    if url.startswith("http"):
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def screenshot_name(scenario_name: str, step: int) -> str:
    return f"{slugify(scenario_name)}-step{step}.png"


def reported_logs(console_logs: list[str]) -> list[str]:
    return [line for line in console_logs if line.startswith(REPORTED_LOG_LEVELS)]


async def execute_action(page: Page, action: Action, base_url: str, timeout_ms: int) -> None:
    """Run a single action. Raises on any failure; never retries."""
    if isinstance(action, NavigateAction):
        await page.goto(
            resolve_url(action.url, base_url), wait_until="domcontentloaded", timeout=timeout_ms
        )
    elif isinstance(action, ClickAction):
        await resolve_locator(page, action.selector).click(timeout=timeout_ms)
    elif isinstance(action, FillAction):
        await resolve_locator(page, action.selector).fill(action.value, timeout=timeout_ms)
    elif isinstance(action, SelectAction):
        await resolve_locator(page, action.selector).select_option(action.value, timeout=timeout_ms)
    elif isinstance(action, WaitAction):
        if action.selector and action.selector.isdigit():
            await page.wait_for_timeout(int(action.selector))
        elif action.selector:
            await resolve_locator(page, action.selector).wait_for(state="visible", timeout=timeout_ms)
        else:
            await page.wait_for_timeout(DEFAULT_WAIT_MS)
    elif isinstance(action, AssertAction):
        locator = resolve_locator(page, action.selector)
        await locator.wait_for(state="visible", timeout=timeout_ms)
        if action.value:
            text = await locator.text_content(timeout=timeout_ms)
            if text is None or action.value not in text:
                raise AssertionMismatchError(action.value, text)
    elif isinstance(action, KeyboardAction):
        await page.keyboard.press(action.key)
    else:
        raise ActionError(f"Unknown action type: {getattr(action, 'type', action)!r}")


class ScenarioExecutor:
    def __init__(self, browser_manager: BrowserManager, options: ExecutorOptions) -> None:
        self.browser_manager = browser_manager
        self.options = options

    async def execute(self, scenario: Scenario, actions: list[Action]) -> VerificationResult:
        start = time.time()
        console_logs: list[str] = []
        browser = await self.browser_manager.acquire()
        context = await browser.new_context(viewport=DEFAULT_VIEWPORT)
        try:
            page = await context.new_page()
            page.on("console", lambda msg: console_logs.append(f"[{msg.type}] {msg.text}"))
            page.on("pageerror", lambda error: console_logs.append(f"[error] {error.message}"))
            return await self.run_actions(page, scenario, actions, console_logs, start=start)
        finally:
            try:
                await context.close()
            except Exception:
                pass

    async def run_actions(
        self,
        page: Page,
        scenario: Scenario,
        actions: list[Action],
        console_logs: list[str] | None = None,
        start: float | None = None,
    ) -> VerificationResult:
        """
        Run actions in order on an already open page, stopping at the first failure.
        """
        start = time.time() if start is None else start
        console_logs = console_logs if console_logs is not None else []
        step_results: list[StepResult] = []

        for index, action in enumerate(actions, start=1):
            try:
                await execute_action(page, action, self.options.base_url, self.options.timeout_ms)
            except Exception as e:
                error = str(e) or type(e).__name__
                logger.debug(f"{scenario.name}: step {index} failed: {error}")
                screenshot = await self._capture_screenshot(page, scenario, index)
                step_results.append(
                    StepResult(
                        step=index,
                        description=action.description,
                        passed=False,
                        error=error,
                        screenshot_path=screenshot,
                    )
                )
                return VerificationResult(
                    scenario=scenario,
                    passed=False,
                    step_results=step_results,
                    failed_step=index,
                    expected=action.description,
                    actual=error,
                    screenshot_path=screenshot,
                    console_logs=reported_logs(console_logs),
                    duration_ms=int((time.time() - start) * 1000),
                )
            step_results.append(StepResult(step=index, description=action.description, passed=True))

        return VerificationResult(
            scenario=scenario,
            passed=True,
            step_results=step_results,
            console_logs=reported_logs(console_logs),
            duration_ms=int((time.time() - start) * 1000),
        )

    async def _capture_screenshot(self, page: Any, scenario: Scenario, step: int) -> str | None:
        path = Path(self.options.screenshot_dir) / screenshot_name(scenario.name, step)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path))
        except Exception as e:
            logger.debug(f"Could not capture screenshot {path}: {e}")
            return None
        return str(path)

    async def capture_page_snapshot(self, url: str | None = None) -> str | None:
        """
        Accessibility outline of the page at url (default: the base URL), used to
        ground selector choices during translation. Returns None on any failure.
        """
        target = resolve_url(url or "/", self.options.base_url)
        try:
            browser = await self.browser_manager.acquire()
            context = await browser.new_context(viewport=DEFAULT_VIEWPORT)
        except Exception as e:
            logger.debug(f"Page snapshot unavailable: {e}")
            return None
        try:
            page = await context.new_page()
            await page.goto(target, wait_until="domcontentloaded", timeout=self.options.timeout_ms)
            snapshot = await page.locator("body").aria_snapshot(timeout=self.options.timeout_ms)
            return snapshot[:PAGE_SNAPSHOT_MAX_CHARS]
        except Exception as e:
            logger.debug(f"Page snapshot of {target} failed: {e}")
            return None
        finally:
            try:
                await context.close()
            except Exception:
                pass
