"""
Iteration loop: coding agent invocations alternating with verification runs,
supervised by a circuit breaker.
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    StopKind,
    StopSignal,
    evaluate_history,
    stuck_scenarios,
)
from .coding_agent import CodingAgent, CodingAgentOptions, build_coding_prompt
from .controller import IterationController, LoopState

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CodingAgent",
    "CodingAgentOptions",
    "IterationController",
    "LoopState",
    "StopKind",
    "StopSignal",
    "build_coding_prompt",
    "evaluate_history",
    "stuck_scenarios",
]
