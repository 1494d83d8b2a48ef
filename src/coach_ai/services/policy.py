"""Routing policy: local, remote or hybrid.

Pure functions with no I/O, so every combination of inputs can be tested.
Local numeric results are always authoritative; a remote step only adds
natural-language text on top of them.
"""

from typing import Literal

from coach_ai.entities import ModelProfile, OrchestrationDecision

Complexity = Literal["simple", "moderate", "complex"]

ALWAYS_LOCAL = frozenset({
    "progressive_suggestion",
    "recovery_score",
    "volume_tracking",
    "record_detection",
})

LARGE_CONTEXT_UNITS = 1500


def decide(
    feature: str,
    has_local_implementation: bool,
    requires_natural_language: bool,
    requires_personalization: bool,
    context_size: int,
    is_online: bool,
) -> OrchestrationDecision:
    """Decide where a request is served.

    Args:
        feature: Feature name
        has_local_implementation: A local computation exists for this feature
        requires_natural_language: The answer is prose, not numbers
        requires_personalization: The prose must be tailored to the user
        context_size: Estimated units of context the remote call would carry
        is_online: Whether the network is reachable

    Returns:
        The routing decision
    """
    if feature in ALWAYS_LOCAL:
        return OrchestrationDecision(
            use_local=True,
            use_remote=False,
            route_label="local_only",
            reasoning="Offline-critical feature, always computed locally",
        )

    if not is_online:
        return OrchestrationDecision(
            use_local=True,
            use_remote=False,
            route_label="local_only",
            reasoning="Offline, using local implementation",
        )

    if requires_natural_language and not has_local_implementation:
        profile = (
            ModelProfile.PRO
            if context_size > LARGE_CONTEXT_UNITS or requires_personalization
            else ModelProfile.FAST
        )
        return OrchestrationDecision(
            use_local=False,
            use_remote=True,
            route_label="remote",
            reasoning=f"Natural language required, using {profile.value} profile",
            profile=profile,
        )

    if has_local_implementation and requires_natural_language:
        return OrchestrationDecision(
            use_local=True,
            use_remote=True,
            route_label="hybrid",
            reasoning="Hybrid: local computation, remote explanation",
            profile=ModelProfile.FAST,
        )

    if has_local_implementation:
        return OrchestrationDecision(
            use_local=True,
            use_remote=False,
            route_label="local_only",
            reasoning="Local implementation available",
        )
    return OrchestrationDecision(
        use_local=False,
        use_remote=True,
        route_label="remote",
        reasoning="No local implementation",
        profile=ModelProfile.FAST,
    )


def assess_complexity(
    context_length: int,
    requires_multi_step: bool,
    requires_personalization: bool,
) -> Complexity:
    if context_length > 2000 or requires_multi_step:
        return "complex"
    if requires_personalization:
        return "moderate"
    return "simple"


def select_profile(complexity: Complexity, requires_reasoning: bool = False) -> ModelProfile:
    """Pro only for complex work that needs reasoning; fast otherwise."""
    if complexity == "complex" and requires_reasoning:
        return ModelProfile.PRO
    return ModelProfile.FAST
