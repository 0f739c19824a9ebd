from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..models import IterationRecord, VerificationSummary


class StopKind(str, Enum):
    NO_PROGRESS = "no_progress"
    REGRESSION = "regression"
    OSCILLATION = "oscillation"


@dataclass(frozen=True)
class StopSignal:
    kind: StopKind
    reason: str


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """
    Thresholds for stopping an unproductive loop.

    - min_history: records required before any signal
    - stagnation_window: identical non-zero failure counts needed for "no progress"
    - regression_margin: how far above the best failure count is a regression
    - stuck_window: trailing records a scenario must fail in to count as stuck
    - oscillation_period: trailing records that must alternate between two failing sets
    """

    min_history: int = 3
    stagnation_window: int = 5
    regression_margin: int = 3
    stuck_window: int = 3
    oscillation_period: int = 4


def _check_stagnation(history: Sequence[IterationRecord], window: int) -> StopSignal | None:
    if len(history) < window:
        return None
    counts = [r.failed for r in history[-window:]]
    if counts[0] > 0 and all(c == counts[0] for c in counts):
        return StopSignal(
            StopKind.NO_PROGRESS,
            f"No progress: {counts[0]} scenarios have been failing for {window} "
            "consecutive iterations.",
        )
    return None


def _check_regression(history: Sequence[IterationRecord], margin: int) -> StopSignal | None:
    if len(history) < 2:
        return None
    best = min(r.failed for r in history)
    current, previous = history[-1], history[-2]
    if current.failed > previous.failed and current.failed > best + margin:
        return StopSignal(
            StopKind.REGRESSION,
            f"Regression detected: {current.failed} failures (was {previous.failed}, "
            f"best was {best}). The coding agent may be making things worse.",
        )
    return None


def _check_oscillation(history: Sequence[IterationRecord], period: int) -> StopSignal | None:
    if len(history) < period:
        return None
    states = [frozenset(r.failing_scenarios) for r in history[-period:]]
    first, second = states[0], states[1]
    if first != second and all(s == (first, second)[i % 2] for i, s in enumerate(states)):
        return StopSignal(
            StopKind.OSCILLATION,
            "Oscillation detected: the coding agent is alternating between two states. "
            "It may be fixing one scenario while breaking another.",
        )
    return None


def evaluate_history(
    history: Sequence[IterationRecord], config: CircuitBreakerConfig = CircuitBreakerConfig()
) -> StopSignal | None:
    """Pure stop decision over the iteration history; first matching condition wins."""
    if len(history) < config.min_history:
        return None
    return (
        _check_stagnation(history, config.stagnation_window)
        or _check_regression(history, config.regression_margin)
        or _check_oscillation(history, config.oscillation_period)
    )


def stuck_scenarios(history: Sequence[IterationRecord], window: int = 3) -> list[str]:
    """Scenarios failing in every one of the last `window` iterations, in first-seen order."""
    if len(history) < window:
        return []
    recent = history[-window:]
    later = [set(r.failing_scenarios) for r in recent[1:]]
    seen: list[str] = []
    for scenario in recent[0].failing_scenarios:
        if scenario not in seen and all(scenario in s for s in later):
            seen.append(scenario)
    return seen


class CircuitBreaker:
    """Append-only iteration history plus the stop decision over it."""

    def __init__(self, config: CircuitBreakerConfig | None = None) -> None:
        self.config = config or CircuitBreakerConfig()
        self._history: list[IterationRecord] = []

    def record(self, iteration: int, summary: VerificationSummary) -> IterationRecord:
        record = IterationRecord.from_summary(iteration, summary)
        self._history.append(record)
        return record

    def record_iteration(self, record: IterationRecord) -> None:
        self._history.append(record)

    def should_stop(self) -> StopSignal | None:
        return evaluate_history(self._history, self.config)

    def stuck_scenarios(self) -> list[str]:
        return stuck_scenarios(self._history, self.config.stuck_window)

    @property
    def history(self) -> list[IterationRecord]:
        return list(self._history)
