"""Remote model client.

Wraps a TextProvider with availability and budget checks, per-attempt
timeouts, bounded retries with exponential backoff, and usage accounting.
Failures never raise: they come back as ``AIResponse(success=False,
source=FALLBACK)`` so callers can switch to a local answer.
"""

import asyncio
import dataclasses
import json
import logging
import math
import re
import time
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from coach_ai.config import settings
from coach_ai.entities import CompiledPrompt, GenerationConfig, ModelProfile, UsageRecord
from coach_ai.exceptions import MalformedResponseError, ProviderError
from coach_ai.models import AIResponse, ResponseSource, UsageStats
from coach_ai.protocols import TextProvider
from coach_ai.services.usage_tracker import UsageTracker

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_CONFIGS: dict[ModelProfile, GenerationConfig] = {
    ModelProfile.FAST: GenerationConfig(
        max_units=500, temperature=0.7, timeout=10.0, retries=2, profile=ModelProfile.FAST
    ),
    ModelProfile.PRO: GenerationConfig(
        max_units=1000, temperature=0.7, timeout=30.0, retries=1, profile=ModelProfile.PRO
    ),
    ModelProfile.LOCAL: GenerationConfig(
        max_units=0, temperature=0.0, timeout=0.1, retries=0, profile=ModelProfile.LOCAL
    ),
}

# US cents per million units (input, output)
PRICING: dict[ModelProfile, tuple[float, float]] = {
    ModelProfile.FAST: (7.5, 30.0),
    ModelProfile.PRO: (125.0, 500.0),
    ModelProfile.LOCAL: (0.0, 0.0),
}

JSON_INSTRUCTION = "\n\nRespond in valid JSON format only."
_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def estimate_cost(input_units: float, output_units: float, profile: ModelProfile) -> float:
    """Estimated cost in US cents."""
    input_rate, output_rate = PRICING[profile]
    return input_units / 1_000_000 * input_rate + output_units / 1_000_000 * output_rate


def config_for(profile: ModelProfile, **overrides: Any) -> GenerationConfig:
    """Default config for a profile with selected fields replaced."""
    return dataclasses.replace(DEFAULT_GENERATION_CONFIGS[profile], **overrides)


def extract_json(text: str) -> Any:
    """Parse JSON from model output, tolerating markdown code fences.

    Raises:
        json.JSONDecodeError: If no valid JSON is found
    """
    match = _FENCE.search(text)
    if match:
        text = match.group(1)
    return json.loads(text.strip())


def parse_structured(text: str, schema: type[BaseModel] | None = None) -> Any:
    """Parse model output as JSON, validated against ``schema`` when given.

    Raises:
        MalformedResponseError: If the text is not JSON or fails validation
    """
    try:
        parsed = extract_json(text)
        if schema is not None:
            parsed = schema.model_validate(parsed)
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedResponseError(f"Malformed structured response: {e}") from e
    return parsed


class ModelClient:
    """Budget-aware, retrying client for the remote text provider.

    Example:
        ```python
        client = ModelClient(provider=GeminiTextProvider.create(), tracker=UsageTracker())
        response = await client.generate_text(prompt, feature="motivation")
        if response.success:
            print(response.data)
        ```
    """

    def __init__(
        self,
        provider: TextProvider | None,
        tracker: UsageTracker | None = None,
        base_delay: float | None = None,
        chars_per_unit: int | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            provider: Remote text provider. None means no remote is available.
            tracker: Budget state. Defaults to an unpersisted tracker.
            base_delay: Backoff base in seconds. Defaults to settings.
            chars_per_unit: Characters per unit when measuring output.
            sleep: Coroutine used between retries (tests inject a recorder).
        """
        self._provider = provider
        self._tracker = tracker or UsageTracker()
        self._base_delay = base_delay if base_delay is not None else settings.retry_base_delay
        self._chars_per_unit = chars_per_unit or settings.chars_per_unit
        self._sleep = sleep

    @property
    def tracker(self) -> UsageTracker:
        return self._tracker

    def check_availability(self) -> bool:
        """Whether a configured provider exists. Independent of the budget."""
        return self._provider is not None and self._provider.is_configured

    def is_within_budget(self) -> bool:
        return self._tracker.is_within_budget()

    async def generate_text(
        self,
        prompt: CompiledPrompt,
        config: GenerationConfig | None = None,
        feature: str = "unknown",
    ) -> AIResponse[str]:
        """Generate text from the remote provider.

        Args:
            prompt: Compiled prompt with its unit estimate
            config: Generation settings. Defaults to the fast profile.
            feature: Feature name recorded in the usage record

        Returns:
            ``source=REMOTE`` with units and cost on success, otherwise a
            failure with ``source=FALLBACK``. No provider call is made when
            the provider is unavailable or the budget is exhausted.
        """
        config = config or DEFAULT_GENERATION_CONFIGS[ModelProfile.FAST]
        start = time.perf_counter()

        if not self.check_availability():
            return AIResponse[str].fail("Remote model not available (no API key)", latency_ms=_elapsed(start))

        if not self._tracker.is_within_budget():
            logger.warning("Usage budget exceeded; skipping remote call for %s", feature)
            return AIResponse[str].fail("Usage budget exceeded", latency_ms=_elapsed(start))

        last_error = "Unknown error"
        for attempt in range(config.retries + 1):
            try:
                text = await asyncio.wait_for(
                    self._provider.generate(prompt, config), timeout=config.timeout
                )
            except asyncio.TimeoutError:
                last_error = f"Request timeout after {config.timeout}s"
                retryable = True
            except ProviderError as e:
                last_error = str(e)
                retryable = e.retryable
            except Exception as e:
                logger.exception("Unexpected provider failure for %s", feature)
                last_error = f"Unexpected provider error: {e}"
                retryable = False
            else:
                return self._record_success(prompt, text, config, feature, start)

            logger.warning("Remote attempt %d/%d failed: %s", attempt + 1, config.retries + 1, last_error)
            if not retryable:
                break
            if attempt < config.retries:
                await self._sleep(self._base_delay * 2**attempt)

        return AIResponse[str].fail(last_error, latency_ms=_elapsed(start))

    async def generate_structured(
        self,
        prompt: CompiledPrompt,
        schema: type[BaseModel] | None = None,
        config: GenerationConfig | None = None,
        feature: str = "unknown",
    ) -> AIResponse[Any]:
        """Generate and parse a JSON response.

        Args:
            prompt: Compiled prompt; a JSON-only instruction is appended
            schema: Optional pydantic model to validate the parsed JSON
            config: Generation settings
            feature: Feature name for usage records

        Returns:
            Parsed JSON (or a validated model instance) on success. A parse
            or validation failure is returned as a failure, never retried.
        """
        json_prompt = dataclasses.replace(prompt, user_prompt=prompt.user_prompt + JSON_INSTRUCTION)
        response = await self.generate_text(json_prompt, config, feature)
        if not response.success or response.data is None:
            return AIResponse[Any](**response.model_dump(exclude={"data"}))

        try:
            parsed = parse_structured(response.data, schema)
        except MalformedResponseError as e:
            logger.warning("Could not parse structured response for %s: %s", feature, e)
            return AIResponse[Any].fail(
                "Failed to parse JSON response",
                source=response.source,
                latency_ms=response.latency_ms,
                units_used=response.units_used,
                cost=response.cost,
            )
        return AIResponse[Any](**response.model_dump(exclude={"data"}), data=parsed)

    def get_usage_stats(self) -> UsageStats:
        """Usage, limits, percentages and fast-profile cost estimates."""
        budget = self._tracker.budget
        return UsageStats(
            daily_used=budget.daily_used,
            daily_limit=budget.daily_limit,
            monthly_used=budget.monthly_used,
            monthly_limit=budget.monthly_limit,
            daily_percentage=_percentage(budget.daily_used, budget.daily_limit),
            monthly_percentage=_percentage(budget.monthly_used, budget.monthly_limit),
            estimated_daily_cost=estimate_cost(budget.daily_used / 2, budget.daily_used / 2, ModelProfile.FAST),
            estimated_monthly_cost=estimate_cost(
                budget.monthly_used / 2, budget.monthly_used / 2, ModelProfile.FAST
            ),
        )

    def set_budget(self, daily_limit: int | None = None, monthly_limit: int | None = None) -> None:
        self._tracker.set_limits(daily_limit=daily_limit, monthly_limit=monthly_limit)

    def _record_success(
        self,
        prompt: CompiledPrompt,
        text: str,
        config: GenerationConfig,
        feature: str,
        start: float,
    ) -> AIResponse[str]:
        input_units = prompt.unit_estimate
        output_units = math.ceil(len(text) / self._chars_per_unit)
        cost = estimate_cost(input_units, output_units, config.profile)
        self._tracker.record(
            UsageRecord(
                day=self._tracker.today(),
                input_units=input_units,
                output_units=output_units,
                provider_id=self._provider.provider_id,
                feature=feature,
                estimated_cost=cost,
            )
        )
        return AIResponse[str].ok(
            text,
            ResponseSource.REMOTE,
            latency_ms=_elapsed(start),
            units_used=input_units + output_units,
            cost=cost,
        )


def _elapsed(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _percentage(used: int, limit: int) -> float:
    return used / limit * 100 if limit else 100.0
