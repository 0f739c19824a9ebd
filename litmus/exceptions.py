"""
Error types raised by litmus.

Input and environment errors are fatal to a verification run. Translation and
action errors are caught per scenario by the runner and turned into failed
results.
"""

from __future__ import annotations


class LitmusError(RuntimeError):
    """Base class for every error litmus raises on purpose."""


class ConfigError(LitmusError):
    pass


class ScenarioError(LitmusError):
    pass


class NoScenariosError(ScenarioError):
    def __init__(self, scenarios_dir: str) -> None:
        super().__init__(
            f"No scenarios found in {scenarios_dir}/. Add scenario files before verifying."
        )
        self.scenarios_dir = scenarios_dir


class NoMatchError(ScenarioError):
    def __init__(self, pattern: str) -> None:
        super().__init__(f'No scenarios match filter "{pattern}"')
        self.pattern = pattern


class TranslationError(LitmusError):
    """The language model did not return a usable action list."""

    def __init__(self, scenario_name: str, raw_response: str, reason: str | None = None) -> None:
        message = (
            f'Failed to translate scenario "{scenario_name}" to browser actions.'
            f"\nResponse: {raw_response[:300]}"
        )
        if reason:
            message = f"{message}\nReason: {reason}"
        super().__init__(message)
        self.scenario_name = scenario_name
        self.raw_response = raw_response[:300]
        self.reason = reason


class ActionError(LitmusError):
    pass


class AssertionMismatchError(ActionError):
    def __init__(self, expected: str, actual: str | None) -> None:
        super().__init__(f'Expected text "{expected}" but got "{(actual or "")[:100]}"')
        self.expected = expected
        self.actual = actual


class ServerUnavailableError(LitmusError):
    pass


class CodingAgentUnavailableError(LitmusError):
    pass
