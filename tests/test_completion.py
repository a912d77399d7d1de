from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from emty_assistant.completion import OpenAICompletionClient
from emty_assistant.errors import CompletionTransportError, ConfigurationError


def _client(handler) -> OpenAICompletionClient:
    return OpenAICompletionClient(
        system_prompt="Be brief.",
        base_url="https://llm.example/v1/",
        model="gpt-4",
        max_tokens=150,
        temperature=0.7,
        fallback_reply="Cevap alınamadı.",
        transport=httpx.MockTransport(handler),
    )


def test_complete_sends_fixed_instruction_and_returns_reply() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": " Selam! "}}]})

    reply = asyncio.run(_client(handler).complete("merhaba", "sk-test"))

    assert reply == "Selam!"
    request = seen[0]
    assert str(request.url) == "https://llm.example/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "merhaba"},
    ]
    assert body["max_tokens"] == 150
    assert body["temperature"] == 0.7


@pytest.mark.parametrize("credential", [None, "", "   "])
def test_missing_credential_raises_configuration_error_without_request(credential) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(ConfigurationError):
        asyncio.run(_client(handler).complete("test", credential))
    assert calls == []


def test_non_success_status_is_a_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    with pytest.raises(CompletionTransportError) as excinfo:
        asyncio.run(_client(handler).complete("test", "sk-wrong"))
    assert excinfo.value.status_code == 401


def test_network_failure_is_a_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CompletionTransportError):
        asyncio.run(_client(handler).complete("test", "sk-test"))


def test_unparseable_body_is_a_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>")

    with pytest.raises(CompletionTransportError):
        asyncio.run(_client(handler).complete("test", "sk-test"))


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": "   "}}]},
        {"choices": [{"message": {"content": None}}]},
    ],
)
def test_response_without_content_falls_back_to_placeholder(payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    assert asyncio.run(_client(handler).complete("test", "sk-test")) == "Cevap alınamadı."
