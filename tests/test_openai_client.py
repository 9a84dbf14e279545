"""Tests for OpenAICompletionClient: request shape and failure translation.

The real openai SDK is exercised end to end over ``httpx.MockTransport``.
"""

from __future__ import annotations

import errno
import json
import socket
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from openai import AsyncOpenAI

from chat_relay.application.error_classifier import ErrorCategory, classify_completion_error
from chat_relay.config import Settings
from chat_relay.domain.errors import HttpError, NetworkError, NoResponseError, SetupError
from chat_relay.domain.models import ChatMessage, CompletionOptions
from chat_relay.infrastructure.openai_client import OpenAICompletionClient

WINDOW = [
    ChatMessage(role="system", content="You are a helpful assistant."),
    ChatMessage(role="user", content="Hi"),
]


def _completion_body(content: str | None = "Hello!", choices: bool = True) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo",
        "choices": (
            [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ]
            if choices
            else []
        ),
    }


def _client(settings: Settings, handler) -> OpenAICompletionClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    sdk = AsyncOpenAI(
        api_key="test-key",
        base_url="https://api.test/v1",
        max_retries=0,
        http_client=http_client,
    )
    return OpenAICompletionClient(settings, client=sdk)


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccess:
    async def test_returns_assistant_reply(self, settings: Settings):
        client = _client(settings, lambda request: httpx.Response(200, json=_completion_body()))

        reply = await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        assert reply == ChatMessage(role="assistant", content="Hello!")

    async def test_sends_single_non_streamed_candidate(self, settings: Settings):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=_completion_body())

        client = _client(settings, handler)
        await client.complete("gpt-4o-mini", WINDOW, CompletionOptions(temperature=1.0))

        body = seen[0]
        assert body["model"] == "gpt-4o-mini"
        assert body["n"] == 1
        assert body["stream"] is False
        assert body["temperature"] == 1.0
        assert body["messages"] == [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "Hi"},
        ]

    async def test_null_content_becomes_empty(self, settings: Settings):
        client = _client(
            settings, lambda request: httpx.Response(200, json=_completion_body(content=None))
        )
        reply = await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())
        assert reply.content == ""

    async def test_no_choices_is_setup_error(self, settings: Settings):
        client = _client(
            settings, lambda request: httpx.Response(200, json=_completion_body(choices=False))
        )
        with pytest.raises(SetupError, match="no choices"):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())


# ---------------------------------------------------------------------------
# HTTP failures
# ---------------------------------------------------------------------------


class TestHttpFailures:
    async def test_401_carries_status_and_payload(self, settings: Settings):
        payload = {"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}}
        client = _client(settings, lambda request: httpx.Response(401, json=payload))

        with pytest.raises(HttpError) as info:
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        assert info.value.status == 401
        assert info.value.status_text == "Unauthorized"
        assert info.value.payload == payload

    async def test_non_json_body_has_no_payload(self, settings: Settings):
        client = _client(settings, lambda request: httpx.Response(502, text="<html>oops</html>"))

        with pytest.raises(HttpError) as info:
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        assert info.value.status == 502
        assert info.value.status_text == "Bad Gateway"
        assert info.value.payload is None


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------


class TestTransportFailures:
    async def test_connection_refused(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(
                "connect ECONNREFUSED 127.0.0.1:443", request=request
            ) from ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")

        client = _client(settings, handler)
        with pytest.raises(NetworkError) as info:
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        assert info.value.code == "ECONNREFUSED"
        assert info.value.message == "connect ECONNREFUSED 127.0.0.1:443"

    async def test_dns_failure(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(
                "getaddrinfo ENOTFOUND api.test", request=request
            ) from socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        client = _client(settings, handler)
        with pytest.raises(NetworkError) as info:
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        assert info.value.code == "ENOTFOUND"

    async def test_timeout_is_no_response(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(settings, handler)
        with pytest.raises(NoResponseError):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

    @pytest.mark.parametrize(
        "transport_error",
        [
            httpx.ReadError("Connection reset by peer"),
            httpx.WriteError("Broken pipe"),
        ],
    )
    async def test_reset_after_send_is_no_response(
        self, settings: Settings, transport_error: httpx.TransportError
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            raise transport_error from ConnectionResetError(
                errno.ECONNRESET, "Connection reset by peer"
            )

        client = _client(settings, handler)
        with pytest.raises(NoResponseError) as info:
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

        classified = classify_completion_error(info.value)
        assert classified.category is ErrorCategory.NO_RESPONSE
        assert classified.message == "No response received from the server"

    async def test_connect_failure_with_other_errno_is_no_response(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(
                "Network is unreachable", request=request
            ) from OSError(errno.ENETUNREACH, "Network is unreachable")

        client = _client(settings, handler)
        with pytest.raises(NoResponseError):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

    async def test_dropped_connection_is_no_response(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("Server disconnected", request=request)

        client = _client(settings, handler)
        with pytest.raises(NoResponseError):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())


# ---------------------------------------------------------------------------
# Setup failures
# ---------------------------------------------------------------------------


class TestSetupFailures:
    async def test_sdk_error_is_setup_error(self, settings: Settings):
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock(side_effect=openai.OpenAIError("bad base url"))
        client = OpenAICompletionClient(settings, client=sdk)

        with pytest.raises(SetupError, match="bad base url"):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions())

    async def test_streaming_rejected_before_call(self, settings: Settings):
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock()
        client = OpenAICompletionClient(settings, client=sdk)

        with pytest.raises(SetupError, match="streaming"):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions(stream=True))
        sdk.chat.completions.create.assert_not_called()

    async def test_multiple_candidates_rejected(self, settings: Settings):
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock()
        client = OpenAICompletionClient(settings, client=sdk)

        with pytest.raises(SetupError, match="one completion candidate"):
            await client.complete("gpt-3.5-turbo", WINDOW, CompletionOptions(candidate_count=2))


def test_builds_sdk_client_from_settings(settings: Settings):
    configured = settings.model_copy(
        update={"openai_base_url": "https://proxy.test/v1", "openai_timeout": 12.5}
    )
    client = OpenAICompletionClient(configured)

    assert client._client.api_key == "test-key"
    assert str(client._client.base_url).startswith("https://proxy.test/v1")
    assert client._client.max_retries == 0
    assert client._client.timeout == 12.5
