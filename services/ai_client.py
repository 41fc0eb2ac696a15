"""
AI provider client for UISketch.

One entry point, generate_text, routes a model selector to Gemini (google-genai)
or to OpenRouter's OpenAI-compatible chat endpoint over httpx.
"""
import asyncio
import logging
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig

from config.ai_models import get_model_config
from config.app_config import (
    GOOGLE_API_KEY,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    GENERATION_TIMEOUT,
    FRONTEND_URL,
)
from models.generation import ProviderResponse

logger = logging.getLogger(__name__)

# HTTP statuses worth retrying at the job level
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class ProviderError(Exception):
    """The provider answered but the request cannot succeed as sent."""


class TransientProviderError(Exception):
    """Timeouts, dropped connections, rate limits and 5xx responses."""


class AIClient:
    def __init__(self, google_api_key: Optional[str] = GOOGLE_API_KEY,
                 openrouter_api_key: Optional[str] = OPENROUTER_API_KEY,
                 timeout: float = GENERATION_TIMEOUT,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.google_api_key = google_api_key
        self.openrouter_api_key = openrouter_api_key
        self.timeout = timeout
        self.http_transport = http_transport
        self._gemini_client = None

        if not self.google_api_key:
            logger.warning("GOOGLE_API_KEY is not configured; sketch-mini generations will fail")
        if not self.openrouter_api_key:
            logger.warning("OPENROUTER_API_KEY is not configured; sketch-pro generations will fail")

    def _get_gemini_client(self):
        if self._gemini_client is None:
            self._gemini_client = genai.Client(api_key=self.google_api_key)
        return self._gemini_client

    async def generate_text(self, system: str, prompt: str, temperature: float, model: str) -> ProviderResponse:
        """
        Run one completion.

        Raises:
            ProviderError: Empty output, bad credentials, rejected request
            TransientProviderError: Timeouts, transport failures, 429 and 5xx
        """
        config = get_model_config(model)
        logger.info(f"Calling {config['provider']} model {config['model']} (selector {model}, temperature {temperature})")

        if config["provider"] == "google":
            return await self._generate_with_gemini(config["model"], system, prompt, temperature)
        if config["provider"] == "openrouter":
            return await self._generate_with_openrouter(config["model"], system, prompt, temperature)
        raise ProviderError(f"Unsupported provider: {config['provider']}")

    async def _generate_with_gemini(self, model_name: str, system: str, prompt: str, temperature: float) -> ProviderResponse:
        if not self.google_api_key:
            raise ProviderError("Gemini API key not set")

        client = self._get_gemini_client()
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.models.generate_content,
                    model=model_name,
                    contents=prompt,
                    config=GenerateContentConfig(
                        system_instruction=system,
                        temperature=temperature,
                    ),
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise TransientProviderError(f"Gemini did not answer within {self.timeout} seconds")
        except genai_errors.ServerError as e:
            raise TransientProviderError(f"Gemini server error: {e}") from e
        except genai_errors.ClientError as e:
            if e.code in RETRYABLE_STATUS_CODES:
                raise TransientProviderError(f"Gemini rate limited: {e}") from e
            raise ProviderError(f"Gemini rejected the request: {e}") from e
        except (httpx.TransportError, ConnectionError) as e:
            raise TransientProviderError(f"Gemini transport error: {e}") from e

        text_output = ""
        if response and response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text_output = "".join(p.text for p in candidate.content.parts if getattr(p, "text", None))

        if not text_output.strip():
            logger.error("No text parts found in Gemini response")
            raise ProviderError("Empty response from model")

        tokens_used = None
        usage = getattr(response, "usage_metadata", None)
        if usage is not None:
            tokens_used = usage.total_token_count

        return ProviderResponse(text=text_output, tokens_used=tokens_used)

    def _openrouter_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.openrouter_api_key}",
            "HTTP-Referer": FRONTEND_URL,
            "X-Title": "UISketch",
            "Content-Type": "application/json",
        }

    async def _generate_with_openrouter(self, model_name: str, system: str, prompt: str, temperature: float) -> ProviderResponse:
        if not self.openrouter_api_key:
            raise ProviderError("OpenRouter API key not set")

        payload = {
            "model": model_name,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.http_transport) as client:
                response = await client.post(
                    f"{OPENROUTER_BASE_URL}/chat/completions",
                    json=payload,
                    headers=self._openrouter_headers(),
                )
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"OpenRouter did not answer within {self.timeout} seconds") from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"Network error talking to OpenRouter: {e}") from e

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientProviderError(f"OpenRouter returned {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise ProviderError(f"OpenRouter returned a non-JSON body (status {response.status_code})")

        if response.status_code != 200:
            error_message = (data.get("error") or {}).get("message", "Unknown API error")
            logger.error(f"OpenRouter API error (Status: {response.status_code}, Model: {model_name}): {error_message}")
            raise ProviderError(error_message)

        choices = data.get("choices") or []
        text_output = ""
        if choices:
            text_output = (choices[0].get("message") or {}).get("content") or ""

        if not text_output.strip():
            logger.error(f"OpenRouter returned no content for model {model_name}")
            raise ProviderError("Empty response from model")

        usage = data.get("usage") or {}
        return ProviderResponse(text=text_output, tokens_used=usage.get("total_tokens"))


# Process-wide instance, created on first use
ai_client = None

def get_ai_client() -> AIClient:
    global ai_client
    if ai_client is None:
        ai_client = AIClient()
    return ai_client
