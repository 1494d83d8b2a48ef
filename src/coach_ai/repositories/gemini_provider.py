"""Gemini implementation of TextProvider.

Talks to the Generative Language REST API:
``POST {base_url}/models/{model}:generateContent?key={api_key}``.

Error mapping:
- 401/403: ProviderAuthError (never retried)
- 429 and 5xx: retryable ProviderError
- Other 4xx: non-retryable ProviderError
- Timeouts and connection errors: retryable ProviderError
- Other transport failures (e.g. undecodable body): non-retryable ProviderError
- Unexpected body shape: non-retryable ProviderError
"""

import logging

import httpx

from coach_ai.config import settings
from coach_ai.entities import CompiledPrompt, GenerationConfig, ModelProfile
from coach_ai.exceptions import ProviderAuthError, ProviderError

logger = logging.getLogger(__name__)


class GeminiTextProvider:
    """Gemini-backed text generation.

    This class satisfies the TextProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = GeminiTextProvider.create()
        text = await provider.generate(prompt, GenerationConfig())
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model_fast: str | None = None,
        model_pro: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Gemini API key. Defaults to settings.gemini_api_key.
            base_url: API base URL. Defaults to settings.gemini_base_url.
            model_fast: Model used for the fast profile.
            model_pro: Model used for the pro profile.
            client: Optional preconfigured HTTP client (tests inject a mock
                transport here).
        """
        self._api_key = api_key if api_key is not None else settings.gemini_api_key
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._models = {
            ModelProfile.FAST: model_fast or settings.model_fast,
            ModelProfile.PRO: model_pro or settings.model_pro,
        }
        self._client = client

    @classmethod
    def create(cls, api_key: str | None = None) -> "GeminiTextProvider":
        return cls(api_key=api_key)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=30.0,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
            )
        return self._client

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def model_for(self, profile: ModelProfile) -> str:
        """Get the model name used for a profile.

        Raises:
            ProviderError: For the local profile, which never calls out
        """
        try:
            return self._models[profile]
        except KeyError:
            raise ProviderError(f"No remote model for profile {profile.value!r}", retryable=False) from None

    async def generate(self, prompt: CompiledPrompt, config: GenerationConfig) -> str:
        """Generate text for a compiled prompt.

        Args:
            prompt: The compiled prompt
            config: Generation settings

        Returns:
            The generated text, stripped

        Raises:
            ProviderAuthError: If the API key is rejected
            ProviderError: For every other failure
        """
        if not self.is_configured:
            raise ProviderAuthError("Gemini API key is not configured")

        model = self.model_for(config.profile)
        url = f"{self._base_url}/models/{model}:generateContent"
        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt.user_prompt}]}],
            "generationConfig": {
                "maxOutputTokens": config.max_units,
                "temperature": config.temperature,
            },
        }
        if prompt.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": prompt.system_prompt}]}

        logger.debug("Calling %s (template=%s)", model, prompt.template_id or "-")
        try:
            response = await self.client.post(
                url,
                params={"key": self._api_key},
                json=payload,
                timeout=config.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError(f"Gemini request timeout: {e}") from e
        except httpx.TransportError as e:
            raise ProviderError(f"Gemini network error: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini response could not be read: {e}", retryable=False) from e

        status = response.status_code
        if status in (401, 403):
            raise ProviderAuthError(f"Gemini rejected the API key ({status})", status_code=status)
        if status == 429:
            raise ProviderError("Gemini rate limit exceeded (429)", status_code=status)
        if status >= 500:
            raise ProviderError(f"Gemini server error ({status})", status_code=status)
        if status >= 400:
            raise ProviderError(
                f"Gemini rejected the request ({status}): {response.text[:200]}",
                retryable=False,
                status_code=status,
            )

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected Gemini response format: {e}", retryable=False) from e
        if not text.strip():
            raise ProviderError("Gemini returned an empty response", retryable=False)
        return text.strip()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
