"""Remote generative-text provider protocol."""

from typing import Protocol, runtime_checkable

from coach_ai.entities import CompiledPrompt, GenerationConfig


@runtime_checkable
class TextProvider(Protocol):
    """Protocol for remote text generation backends.

    Example:
        ```python
        provider: TextProvider = GeminiTextProvider(api_key="...")
        text = await provider.generate(prompt, config)
        ```
    """

    @property
    def provider_id(self) -> str:
        """Identifier recorded in usage records."""
        ...

    @property
    def is_configured(self) -> bool:
        """Whether credentials are present. No network call is made."""
        ...

    async def generate(self, prompt: CompiledPrompt, config: GenerationConfig) -> str:
        """Generate text for a compiled prompt.

        Args:
            prompt: The compiled prompt
            config: Generation settings (profile, max units, temperature)

        Returns:
            Generated text

        Raises:
            ProviderError: On failure; ``retryable`` tells the caller whether
                repeating the request may help
        """
        ...
