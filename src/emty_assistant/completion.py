"""Chat-completion client used for one request/response round trip per turn."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from emty_assistant.errors import CompletionTransportError, ConfigurationError

DEFAULT_FALLBACK_REPLY = "Cevap alınamadı."


class CompletionClient(Protocol):
    """Turns a user prompt into a reply from a remote language model."""

    async def complete(self, prompt: str, credential: str | None) -> str:
        """Return the reply text for ``prompt``."""


class OpenAICompletionClient:
    """Single-attempt client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        *,
        system_prompt: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4",
        max_tokens: int = 150,
        temperature: float = 0.7,
        timeout_seconds: float | None = 30.0,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._system_prompt = system_prompt
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = httpx.Timeout(timeout_seconds)
        self._fallback_reply = fallback_reply
        self._transport = transport
        self._logger = logger or logging.getLogger("emty_assistant.completion")

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }

    async def complete(self, prompt: str, credential: str | None) -> str:
        if not credential or not credential.strip():
            raise ConfigurationError("API anahtarı yapılandırılmamış")

        headers = {"Authorization": f"Bearer {credential.strip()}"}
        self._logger.info("completion_requested", extra={"model": self._model, "prompt_chars": len(prompt)})
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, headers=headers, json=self.build_payload(prompt))
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise CompletionTransportError("AI yanıtı zamanında gelmedi. Lütfen tekrar deneyin.") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise CompletionTransportError(
                f"AI yanıtı alınamadı (HTTP {status_code}). Lütfen tekrar deneyin.",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise CompletionTransportError(f"AI servisine ulaşılamadı: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise CompletionTransportError(
                "AI yanıtı okunamadı. Lütfen tekrar deneyin.",
                status_code=response.status_code,
            ) from exc

        reply = self.extract_reply(data)
        self._logger.info("completion_received", extra={"reply_chars": len(reply)})
        return reply

    def extract_reply(self, data: Any) -> str:
        """Pull the first choice's message content, or the fallback reply when there is none."""
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return self._fallback_reply
        if not isinstance(content, str) or not content.strip():
            return self._fallback_reply
        return content.strip()
