"""
litmus - verify a web app against behavioral scenarios and iterate with a
coding agent until they all pass.
"""

from .config import LitmusConfig, LoopConfig, load_config
from .dev_server import DevServer, is_server_ready
from .exceptions import (
    ActionError,
    AssertionMismatchError,
    CodingAgentUnavailableError,
    ConfigError,
    LitmusError,
    NoMatchError,
    NoScenariosError,
    ScenarioError,
    ServerUnavailableError,
    TranslationError,
)
from .failure_artifacts import RunArtifacts
from .llm_provider import AnthropicProvider, LLMProvider, LLMResponse
from .loop import CircuitBreaker, CircuitBreakerConfig, CodingAgent, IterationController
from .models import (
    Action,
    IterationRecord,
    LoopResult,
    Scenario,
    ScenarioInput,
    ScenarioMetadata,
    StepResult,
    VerificationResult,
    VerificationSummary,
)
from .runner import ActionTranslator, BrowserManager, ScenarioExecutor, VerificationRunner

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionError",
    "ActionTranslator",
    "AnthropicProvider",
    "AssertionMismatchError",
    "BrowserManager",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CodingAgent",
    "CodingAgentUnavailableError",
    "ConfigError",
    "DevServer",
    "IterationController",
    "IterationRecord",
    "LLMProvider",
    "LLMResponse",
    "LitmusConfig",
    "LitmusError",
    "LoopConfig",
    "LoopResult",
    "NoMatchError",
    "NoScenariosError",
    "RunArtifacts",
    "Scenario",
    "ScenarioError",
    "ScenarioExecutor",
    "ScenarioInput",
    "ScenarioMetadata",
    "ServerUnavailableError",
    "StepResult",
    "TranslationError",
    "VerificationResult",
    "VerificationRunner",
    "VerificationSummary",
    "is_server_ready",
    "load_config",
]
