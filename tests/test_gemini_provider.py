"""
Tests for the Gemini text provider, using httpx's mock transport.
"""

import json

import httpx
import pytest

from coach_ai.entities import CompiledPrompt, GenerationConfig, ModelProfile
from coach_ai.exceptions import ProviderAuthError, ProviderError
from coach_ai.protocols import TextProvider
from coach_ai.repositories import GeminiTextProvider

PROMPT = CompiledPrompt(system_prompt="Be brief.", user_prompt="Motivate me", unit_estimate=6, template_id="motivation")


def ok_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_provider(handler, api_key="test-key") -> GeminiTextProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiTextProvider(
        api_key=api_key,
        base_url="https://example.test/v1beta",
        model_fast="fast-model",
        model_pro="pro-model",
        client=client,
    )


def test_satisfies_protocol():
    assert isinstance(GeminiTextProvider(api_key="k"), TextProvider)
    assert GeminiTextProvider(api_key="k").is_configured
    assert not GeminiTextProvider(api_key="").is_configured


@pytest.mark.asyncio
async def test_generate_builds_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=ok_body("  Lift heavy.  "))

    provider = make_provider(handler)
    text = await provider.generate(PROMPT, GenerationConfig(max_units=30, temperature=0.9, profile=ModelProfile.PRO))

    assert text == "Lift heavy."
    assert seen["url"].startswith("https://example.test/v1beta/models/pro-model:generateContent")
    assert "key=test-key" in seen["url"]
    body = seen["body"]
    assert body["generationConfig"] == {"maxOutputTokens": 30, "temperature": 0.9}
    assert body["systemInstruction"]["parts"][0]["text"] == "Be brief."
    assert body["contents"][0]["parts"][0]["text"] == "Motivate me"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,retryable,error_type",
    [
        (401, False, ProviderAuthError),
        (403, False, ProviderAuthError),
        (429, True, ProviderError),
        (503, True, ProviderError),
        (400, False, ProviderError),
    ],
)
async def test_status_mapping(status, retryable, error_type):
    provider = make_provider(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(error_type) as exc_info:
        await provider.generate(PROMPT, GenerationConfig())
    assert exc_info.value.retryable is retryable
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_network_error_is_retryable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError) as exc_info:
        await make_provider(handler).generate(PROMPT, GenerationConfig())
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_malformed_and_empty_bodies_are_not_retryable():
    for body in ({"candidates": []}, ok_body("   ")):
        provider = make_provider(lambda request, body=body: httpx.Response(200, json=body))
        with pytest.raises(ProviderError) as exc_info:
            await provider.generate(PROMPT, GenerationConfig())
        assert not exc_info.value.retryable


@pytest.mark.asyncio
async def test_unconfigured_and_local_profile_fail_fast():
    calls = []
    provider = make_provider(lambda request: calls.append(request) or httpx.Response(200, json=ok_body("x")), api_key="")
    with pytest.raises(ProviderAuthError):
        await provider.generate(PROMPT, GenerationConfig())

    provider = make_provider(lambda request: calls.append(request) or httpx.Response(200, json=ok_body("x")))
    with pytest.raises(ProviderError):
        await provider.generate(PROMPT, GenerationConfig(profile=ModelProfile.LOCAL))
    assert calls == []
    await provider.close()


@pytest.mark.asyncio
async def test_undecodable_body_is_not_retryable():
    def handler(request):
        return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip at all")

    with pytest.raises(ProviderError) as exc_info:
        await make_provider(handler).generate(PROMPT, GenerationConfig())
    assert not exc_info.value.retryable
    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
