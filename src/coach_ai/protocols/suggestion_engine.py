"""Local suggestion engine protocol."""

from typing import Protocol, runtime_checkable

from coach_ai.models import ExerciseContext, LocalSuggestion


@runtime_checkable
class SuggestionEngine(Protocol):
    """Deterministic, offline load/rep recommender.

    Its numbers are authoritative: AI text explains them, never replaces them.
    """

    def compute_suggestion(self, context: ExerciseContext) -> LocalSuggestion:
        ...
