"""
Pydantic models for litmus - scenarios, browser actions and verification results
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# ========== Scenario Models ==========

class ScenarioMetadata(BaseModel):
    """Header fields of a scenario file"""
    priority: Literal["high", "medium", "low"] = "medium"
    type: Literal["happy-path", "edge-case", "failure-mode", "infrastructure"] = "happy-path"
    confidence: Literal["direct", "expanded", "inferred"] = "direct"


class ScenarioInput(BaseModel):
    """Scenario content without a storage location (what the writer accepts)"""
    name: str
    category: str
    context: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    expected: List[str] = Field(default_factory=list)
    metadata: ScenarioMetadata = Field(default_factory=ScenarioMetadata)


class Scenario(ScenarioInput):
    """A scenario loaded from disk, identified by its file path"""
    model_config = ConfigDict(frozen=True)

    file_path: str
    raw: str = ""


# ========== Action Models ==========

class _ActionBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return "" if value is None else value


class NavigateAction(_ActionBase):
    type: Literal["navigate"]
    url: str


class ClickAction(_ActionBase):
    type: Literal["click"]
    selector: str


class FillAction(_ActionBase):
    type: Literal["fill"]
    selector: str
    value: str


class SelectAction(_ActionBase):
    type: Literal["select"]
    selector: str
    value: str


class WaitAction(_ActionBase):
    type: Literal["wait"]
    selector: Optional[str] = None

    @field_validator("selector", mode="before")
    @classmethod
    def _numeric_selector(cls, value):
        # models sometimes send {"selector": 2000} for a plain sleep
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value


class AssertAction(_ActionBase):
    type: Literal["assert"]
    selector: str
    value: Optional[str] = None


class KeyboardAction(_ActionBase):
    type: Literal["keyboard"]
    key: str


Action = Annotated[
    Union[
        NavigateAction,
        ClickAction,
        FillAction,
        SelectAction,
        WaitAction,
        AssertAction,
        KeyboardAction,
    ],
    Field(discriminator="type"),
]

ACTION_LIST = TypeAdapter(List[Action])


# ========== Verification Models ==========

class StepResult(BaseModel):
    """Outcome of one executed action (step is 1-based)"""
    step: int
    description: str
    passed: bool
    error: Optional[str] = None
    screenshot_path: Optional[str] = None


class VerificationResult(BaseModel):
    """Outcome of one scenario in one verification run"""
    scenario: Scenario
    passed: bool
    step_results: List[StepResult] = Field(default_factory=list)
    failed_step: Optional[int] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    screenshot_path: Optional[str] = None
    console_logs: List[str] = Field(default_factory=list)
    duration_ms: int = 0


class VerificationSummary(BaseModel):
    """Aggregate of every result in one verification run"""
    model_config = ConfigDict(frozen=True)

    total: int
    passed: int
    failed: int
    results: List[VerificationResult]
    duration_ms: int

    @classmethod
    def from_results(cls, results: List[VerificationResult], duration_ms: int) -> "VerificationSummary":
        passed = sum(1 for r in results if r.passed)
        return cls(
            total=len(results),
            passed=passed,
            failed=len(results) - passed,
            results=list(results),
            duration_ms=duration_ms,
        )

    def failures(self) -> List[VerificationResult]:
        return [r for r in self.results if not r.passed]


# ========== Loop Models ==========

class IterationRecord(BaseModel):
    """One data point in the circuit breaker history"""
    model_config = ConfigDict(frozen=True)

    iteration: int
    passed: int
    failed: int
    failing_scenarios: List[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, iteration: int, summary: VerificationSummary) -> "IterationRecord":
        return cls(
            iteration=iteration,
            passed=summary.passed,
            failed=summary.failed,
            failing_scenarios=[r.scenario.file_path for r in summary.failures()],
        )


class AgentResult(BaseModel):
    """Result of one coding agent invocation"""
    success: bool
    output: str
    timed_out: bool = False


class LoopResult(BaseModel):
    """Final outcome of the iteration loop"""
    success: bool
    iterations: int
    final_summary: Optional[VerificationSummary] = None
    stopped_reason: Optional[str] = None
    stop_kind: Optional[str] = None
    stuck_scenarios: List[str] = Field(default_factory=list)
