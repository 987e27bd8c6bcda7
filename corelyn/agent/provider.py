"""Chat completion providers -- one HTTP exchange per assistant reply."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from ..errors import ApiKeyNotConfiguredError, ProviderError, UnknownProviderError

logger = logging.getLogger(__name__)

NO_RESPONSE = "(no response)"
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class ProviderSpec:
    name: str
    endpoint: str


PROVIDERS: dict[str, ProviderSpec] = {
    "anthropic": ProviderSpec("Anthropic", "https://api.anthropic.com/v1/messages"),
    "openai": ProviderSpec("OpenAI", "https://api.openai.com/v1/chat/completions"),
    "cerebras": ProviderSpec("Cerebras", "https://api.cerebras.ai/v1/chat/completions"),
}


class Provider(Protocol):
    async def send(self, messages: Sequence[dict[str, str]], system_prompt: str | None) -> str: ...


class HttpProvider:
    """Talks to one vendor endpoint; request shape depends on the vendor."""

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 120.0,
        endpoint: str | None = None,
    ) -> None:
        spec = PROVIDERS.get(provider)
        if spec is None:
            raise UnknownProviderError(f"Invalid provider: {provider}")
        self.provider = provider
        self.model = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self.endpoint = endpoint or spec.endpoint

    @property
    def is_anthropic(self) -> bool:
        return self.provider == "anthropic"

    def build_request(
        self,
        messages: Sequence[dict[str, str]],
        system_prompt: str | None,
    ) -> tuple[dict[str, str], dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        if self.is_anthropic:
            headers["x-api-key"] = self._api_key
            headers["anthropic-version"] = ANTHROPIC_VERSION
            body: dict[str, Any] = {
                "model": self.model,
                "messages": list(messages),
                "max_tokens": self._max_tokens,
                "temperature": self._temperature,
            }
            if system_prompt:
                body["system"] = system_prompt
            return headers, body

        headers["Authorization"] = f"Bearer {self._api_key}"
        msgs = list(messages)
        if system_prompt:
            msgs = [{"role": "system", "content": system_prompt}, *msgs]
        return headers, {"model": self.model, "messages": msgs, "temperature": self._temperature}

    def extract_text(self, data: Any) -> str:
        try:
            if self.is_anthropic:
                text = data["content"][0]["text"]
            else:
                text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return NO_RESPONSE
        if not isinstance(text, str) or not text:
            return NO_RESPONSE
        return text

    async def send(self, messages: Sequence[dict[str, str]], system_prompt: str | None) -> str:
        if not self._api_key:
            raise ApiKeyNotConfiguredError("No API key configured.")
        headers, body = self.build_request(messages, system_prompt)
        logger.info(
            "[provider.send] provider=%s model=%s messages=%d",
            self.provider, self.model, len(body["messages"]),
        )
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint,
                    json=body,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as resp:
                    if resp.status >= 400:
                        raise ProviderError(await self._error_message(resp))
                    data = await resp.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            logger.error("[provider.send] request failed: %s", exc)
            raise ProviderError(f"Provider request failed: {str(exc) or type(exc).__name__}") from exc
        except ValueError as exc:
            logger.error("[provider.send] undecodable response: %s", exc)
            raise ProviderError("Provider returned an undecodable response.") from exc

        text = self.extract_text(data)
        logger.info("[provider.send] response len=%d", len(text))
        return text

    @staticmethod
    async def _error_message(resp: aiohttp.ClientResponse) -> str:
        fallback = f"Provider error: {resp.status}"
        try:
            data = await resp.json(content_type=None)
        except (aiohttp.ClientError, ValueError):
            logger.error("[provider.send] HTTP %d", resp.status)
            return fallback
        error = data.get("error") if isinstance(data, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        logger.error("[provider.send] HTTP %d: %s", resp.status, message or "(no detail)")
        return message or fallback


def create_provider(settings: Any) -> HttpProvider:
    """Build the configured provider from a :class:`Settings`-like object."""
    return HttpProvider(
        settings.provider,
        settings.api_key,
        settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.provider_timeout,
    )
