import json

import httpx
import pytest

from services.ai_client import AIClient, ProviderError, TransientProviderError


def openrouter_client(handler):
    return AIClient(
        google_api_key="test-google-key",
        openrouter_api_key="test-openrouter-key",
        timeout=5,
        http_transport=httpx.MockTransport(handler),
    )


async def test_openrouter_success_returns_text_and_tokens():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["title"] = request.headers["X-Title"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "choices": [{"message": {"content": "```html\n<div class=\"p-4\">hi</div>\n```"}}],
            "usage": {"total_tokens": 321},
        })

    response = await openrouter_client(handler).generate_text("system text", "user text", 0.5, "sketch-pro")

    assert response.text.startswith("```html")
    assert response.tokens_used == 321
    assert seen["url"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer test-openrouter-key"
    assert seen["title"] == "UISketch"
    assert seen["body"]["temperature"] == 0.5
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "user text"},
    ]


@pytest.mark.parametrize("status_code", [429, 500, 503])
async def test_retryable_statuses_are_transient(status_code):
    client = openrouter_client(lambda request: httpx.Response(status_code, json={"error": {"message": "busy"}}))

    with pytest.raises(TransientProviderError):
        await client.generate_text("s", "p", 0.7, "sketch-pro")


async def test_client_error_is_a_provider_error_with_its_message():
    client = openrouter_client(lambda request: httpx.Response(400, json={"error": {"message": "Unknown model"}}))

    with pytest.raises(ProviderError, match="Unknown model"):
        await client.generate_text("s", "p", 0.7, "sketch-pro")


async def test_empty_content_is_a_provider_error():
    client = openrouter_client(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": ""}}]}))

    with pytest.raises(ProviderError, match="Empty response"):
        await client.generate_text("s", "p", 0.7, "sketch-pro")


async def test_connection_failure_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientProviderError):
        await openrouter_client(handler).generate_text("s", "p", 0.7, "sketch-pro")


async def test_missing_keys_fail_without_calling_out():
    client = AIClient(google_api_key=None, openrouter_api_key=None, timeout=5)

    with pytest.raises(ProviderError, match="OpenRouter API key not set"):
        await client.generate_text("s", "p", 0.7, "sketch-pro")
    with pytest.raises(ProviderError, match="Gemini API key not set"):
        await client.generate_text("s", "p", 0.7, "sketch-mini")


async def test_unknown_model_selector_raises():
    with pytest.raises(KeyError):
        await openrouter_client(lambda request: httpx.Response(200)).generate_text("s", "p", 0.7, "sketch-ultra")
