"""Reasoning agent entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class QueryIntent(str, Enum):
    PROGRESS = "progress"
    EXERCISE_SUGGESTION = "exercise_suggestion"
    PROGRAM_ADVICE = "program_advice"
    RECOVERY = "recovery"
    FORM = "form"
    MOTIVATION = "motivation"
    GENERAL = "general"


class AgentAction(str, Enum):
    ANALYZE_HISTORY = "analyze_history"
    CHECK_RECOVERY = "check_recovery"
    SUGGEST_EXERCISE = "suggest_exercise"
    GENERATE_RESPONSE = "generate_response"


@dataclass
class AgentStep:
    """One executed step. ``output`` is filled in after execution."""

    action: AgentAction
    input: dict[str, Any] = field(default_factory=dict)
    rationale: str = ""
    output: Any = None
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class AgentPlan:
    goal: QueryIntent
    query: str
    steps: list[AgentStep] = field(default_factory=list)


@dataclass
class AgentResult:
    """Outcome of running a plan."""

    success: bool
    final_response: str
    steps: list[AgentStep]
    total_latency_ms: float
    total_units: int
    source: str
    intent: QueryIntent
    cost: float | None = None
