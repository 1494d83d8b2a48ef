"""Entities describing a remote generation request and the routing decision."""

from dataclasses import dataclass
from enum import Enum


class ModelProfile(str, Enum):
    """Capability tier of the text generator."""

    FAST = "fast"
    PRO = "pro"
    LOCAL = "local"


@dataclass(frozen=True)
class GenerationConfig:
    """Per-call generation settings.

    Attributes:
        max_units: Maximum output units requested from the provider
        temperature: Sampling temperature
        timeout: Per-attempt timeout in seconds
        retries: Retries after the first attempt
    """

    max_units: int = 500
    temperature: float = 0.7
    timeout: float = 10.0
    retries: int = 2
    profile: ModelProfile = ModelProfile.FAST


@dataclass(frozen=True)
class CompiledPrompt:
    """A prompt ready to send, with its estimated size in units."""

    system_prompt: str
    user_prompt: str
    unit_estimate: int
    template_id: str = ""

    @property
    def text(self) -> str:
        if not self.system_prompt:
            return self.user_prompt
        return f"{self.system_prompt}\n\n{self.user_prompt}"


@dataclass(frozen=True)
class OrchestrationDecision:
    """Outcome of the routing policy for one request."""

    use_local: bool
    use_remote: bool
    route_label: str
    reasoning: str
    profile: ModelProfile = ModelProfile.LOCAL
