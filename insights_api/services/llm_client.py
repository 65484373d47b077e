"""Async wrappers around the generative AI providers.

Every provider exposes the same ``complete`` coroutine and raises
``LLMUnavailableError`` for anything that prevents a usable answer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from openai import AsyncOpenAI

from ..config import ProviderSettings
from ..errors import LLMUnavailableError

logger = logging.getLogger(__name__)


class LLMProvider:
    name = "base"

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> str:
        raise NotImplementedError


def _describe_openai_error(exc: Exception) -> str:
    error_msg = str(exc)
    lowered = error_msg.lower()
    if "rate_limit" in lowered:
        return f"OpenAI rate limit exceeded: {error_msg}"
    if "invalid_api_key" in lowered or "authentication" in lowered:
        return f"Invalid OpenAI API key: {error_msg}"
    if "timeout" in lowered or "timed out" in lowered or type(exc).__name__ == "TimeoutError":
        return f"OpenAI API error: request timed out: {error_msg}"
    if "insufficient_quota" in lowered:
        return f"OpenAI quota exceeded: {error_msg}"
    return f"OpenAI API error: {error_msg}"


class OpenAIProvider(LLMProvider):
    """Chat-completions provider (also serves OpenAI-compatible base URLs)."""

    name = "openai"

    def __init__(self, settings: ProviderSettings) -> None:
        self.settings = settings
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.settings.api_key:
            raise LLMUnavailableError("OpenAI API key is not configured")
        if self._client is None:
            kwargs: Dict[str, Any] = {
                "api_key": self.settings.api_key,
                "timeout": self.settings.timeout,
            }
            if self.settings.base_url:
                kwargs["base_url"] = self.settings.base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> str:
        client = self._get_client()
        request: Dict[str, Any] = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        try:
            result = await client.chat.completions.create(**request)
        except Exception as exc:  # pragma: no cover - network interaction
            raise LLMUnavailableError(_describe_openai_error(exc)) from exc

        content = result.choices[0].message.content if result.choices else ""
        return (content or "").strip()


class OllamaProvider(LLMProvider):
    """Local Ollama server via its ``/api/generate`` endpoint."""

    name = "ollama"

    def __init__(self, settings: ProviderSettings) -> None:
        self.settings = settings
        self.host = (settings.base_url or "http://localhost:11434").rstrip("/")

    def _generate(self, payload: Dict[str, Any]) -> str:
        try:
            response = requests.post(
                f"{self.host}/api/generate", json=payload, timeout=self.settings.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise LLMUnavailableError(f"Ollama request failed: {exc}") from exc
        if not isinstance(data, dict):
            raise LLMUnavailableError("Ollama returned an unexpected payload")
        return str(data.get("response") or "").strip()

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.settings.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "options": {"temperature": temperature, "num_predict": max_tokens},
            "stream": False,
        }
        if json_mode:
            payload["format"] = "json"
        return await asyncio.to_thread(self._generate, payload)


PROVIDERS = {
    OpenAIProvider.name: OpenAIProvider,
    OllamaProvider.name: OllamaProvider,
}


def build_provider(settings: ProviderSettings) -> LLMProvider:
    try:
        provider_cls = PROVIDERS[settings.provider]
    except KeyError:
        raise ValueError(f"Unsupported LLM provider: {settings.provider}") from None
    logger.debug("llm_provider_built", extra={"provider": settings.provider, "model": settings.model})
    return provider_cls(settings)
