"""
The iteration loop: code → verify → decide, until every scenario passes or
the loop has to stop.

States:
    CODING     invoke the coding agent for the current iteration
    VERIFYING  run every scenario
    DECIDING   all passing → DONE; else consult the circuit breaker
    DONE       terminal, success
    STOPPED    terminal: max iterations, circuit breaker, or an internal error

Only DECIDING records into the circuit breaker, so a verification run that
crashes never becomes a data point.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Protocol

from ..exceptions import CodingAgentUnavailableError
from ..failure_artifacts import RunArtifacts
from ..models import AgentResult, LoopResult, VerificationSummary
from ..runner.reporting import format_failure_report
from .circuit_breaker import CircuitBreaker, StopSignal

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    CODING = "coding"
    VERIFYING = "verifying"
    DECIDING = "deciding"
    DONE = "done"
    STOPPED = "stopped"


TERMINAL_STATES = frozenset({LoopState.DONE, LoopState.STOPPED})


class Agent(Protocol):
    def invoke(self, iteration: int, failure_report: str | None = None) -> AgentResult: ...


class Verifier(Protocol):
    async def run(self) -> VerificationSummary: ...


class Resources(Protocol):
    async def close(self) -> None: ...


class IterationController:
    def __init__(
        self,
        runner: Verifier,
        agent: Agent,
        artifacts: RunArtifacts,
        *,
        max_iterations: int,
        breaker: CircuitBreaker | None = None,
        browser_manager: Resources | None = None,
        dev_server=None,
    ) -> None:
        self.runner = runner
        self.agent = agent
        self.artifacts = artifacts
        self.max_iterations = max_iterations
        self.breaker = breaker or CircuitBreaker()
        self.browser_manager = browser_manager
        self.dev_server = dev_server

        self.state = LoopState.CODING
        self.iteration = 1
        self.failure_report: str | None = None
        self.last_summary: VerificationSummary | None = None
        self._pending_summary: VerificationSummary | None = None
        self.stop_signal: StopSignal | None = None
        self.stopped_reason: str | None = None
        self.transitions: list[tuple[LoopState, LoopState]] = []

    async def run(self) -> LoopResult:
        logger.info(f"Starting loop (max {self.max_iterations} iterations)")
        self.artifacts.ensure()
        handlers = {
            LoopState.CODING: self._code,
            LoopState.VERIFYING: self._verify,
            LoopState.DECIDING: self._decide,
        }
        try:
            while self.state not in TERMINAL_STATES:
                try:
                    next_state = await handlers[self.state]()
                except Exception as e:
                    logger.exception(f"Loop aborted in state {self.state.value}")
                    self.stopped_reason = f"Internal error: {e}"
                    next_state = LoopState.STOPPED
                self._transition(next_state)
        finally:
            await self._cleanup()
        return self._result()

    def _transition(self, next_state: LoopState) -> None:
        logger.debug(f"{self.state.value} -> {next_state.value} (iteration {self.iteration})")
        self.transitions.append((self.state, next_state))
        self.state = next_state

    async def _code(self) -> LoopState:
        if self.iteration > self.max_iterations:
            self.stopped_reason = f"Reached maximum iterations ({self.max_iterations})"
            logger.warning(self.stopped_reason)
            return LoopState.STOPPED

        logger.info(f"-- Iteration {self.iteration} --")
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None, self.agent.invoke, self.iteration, self.failure_report
            )
        except CodingAgentUnavailableError as e:
            self.stopped_reason = str(e)
            logger.error(self.stopped_reason)
            return LoopState.STOPPED

        self.artifacts.write_agent_output(self.iteration, result.output)
        if not result.success:
            logger.warning(
                f"Coding agent returned non-zero exit code (iteration {self.iteration})"
            )
        return LoopState.VERIFYING

    async def _verify(self) -> LoopState:
        logger.info("Verifying scenarios...")
        try:
            self._pending_summary = await self.runner.run()
        except Exception as e:
            # not evidence about the agent's code: skip straight to the next iteration
            logger.error(f"Verification failed: {e}")
            self._pending_summary = None
            self.iteration += 1
            return LoopState.CODING
        return LoopState.DECIDING

    async def _decide(self) -> LoopState:
        summary = self._pending_summary
        self._pending_summary = None
        self.last_summary = summary

        if summary.failed == 0:
            logger.info(f"All {summary.total} scenarios passing!")
            return LoopState.DONE

        logger.info(f"{summary.passed}/{summary.total} passing ({summary.failed} failing)")
        self.breaker.record(self.iteration, summary)
        signal = self.breaker.should_stop()
        if signal is not None:
            self.stop_signal = signal
            self.stopped_reason = signal.reason
            logger.warning(f"Circuit breaker: {signal.reason}")
            return LoopState.STOPPED

        self.failure_report = format_failure_report(summary)
        self.artifacts.write_failure_report(self.iteration, self.failure_report)
        logger.info("Failures fed back to coding agent.")
        self.iteration += 1
        return LoopState.CODING

    async def _cleanup(self) -> None:
        if self.browser_manager is not None:
            try:
                await self.browser_manager.close()
            except Exception as e:
                logger.debug(f"Ignoring browser shutdown error: {e}")
        if self.dev_server is not None:
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self.dev_server.stop)
            except Exception as e:
                logger.debug(f"Ignoring dev server shutdown error: {e}")

    def _result(self) -> LoopResult:
        success = self.state is LoopState.DONE
        return LoopResult(
            success=success,
            iterations=min(self.iteration, self.max_iterations),
            final_summary=self.last_summary,
            stopped_reason=None if success else self.stopped_reason,
            stop_kind=self.stop_signal.kind.value if self.stop_signal else None,
            stuck_scenarios=[] if success else self.breaker.stuck_scenarios(),
        )
