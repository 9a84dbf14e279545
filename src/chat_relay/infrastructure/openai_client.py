"""OpenAI chat-completion client.

Wraps ``openai.AsyncOpenAI`` and converts every SDK failure into one of the
tagged ``CompletionError`` variants, so callers never see openai or httpx
exception types.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator
from typing import Any

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI

from chat_relay.config import Settings
from chat_relay.domain.errors import (
    CompletionError,
    HttpError,
    NetworkError,
    NoResponseError,
    SetupError,
)
from chat_relay.domain.models import ChatMessage, CompletionOptions

DNS_FAILURE = "ENOTFOUND"
CONNECTION_REFUSED = "ECONNREFUSED"


class OpenAICompletionClient:
    """Single-shot, non-streaming chat completions against the OpenAI API.

    Parameters
    ----------
    settings:
        Relay settings; supplies the API key, base URL and transport timeout.
    client:
        Optional pre-built ``AsyncOpenAI`` (tests inject one backed by
        ``httpx.MockTransport``).
    """

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        if client is None:
            kwargs: dict[str, Any] = {"api_key": settings.openai_key, "max_retries": 0}
            if settings.openai_base_url:
                kwargs["base_url"] = settings.openai_base_url
            if settings.openai_timeout is not None:
                kwargs["timeout"] = settings.openai_timeout
            client = AsyncOpenAI(**kwargs)
        self._client = client

    async def complete(
        self,
        model: str,
        messages: list[ChatMessage],
        options: CompletionOptions,
    ) -> ChatMessage:
        if options.stream:
            raise SetupError("streaming completions are not supported")
        if options.candidate_count != 1:
            raise SetupError("exactly one completion candidate is supported")

        try:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=[m.model_dump() for m in messages],
                temperature=options.temperature,
                n=options.candidate_count,
                stream=False,
            )
        except openai.APIStatusError as exc:
            raise HttpError(
                status=exc.status_code,
                status_text=exc.response.reason_phrase,
                payload=_json_body(exc.response),
            ) from exc
        except openai.APITimeoutError as exc:
            raise NoResponseError(str(exc)) from exc
        except openai.APIConnectionError as exc:
            raise _connection_failure(exc) from exc
        except (openai.OpenAIError, TypeError, ValueError) as exc:
            raise SetupError(str(exc)) from exc

        if not completion.choices:
            raise SetupError("completion response contained no choices")

        reply = completion.choices[0].message
        logger.debug("Completion received | model={} | id={}", completion.model, completion.id)
        return ChatMessage(role="assistant", content=reply.content or "")

    async def close(self) -> None:
        await self._client.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_body(response: httpx.Response) -> Any:
    """Decode an error response body, or ``None`` when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def _connection_failure(exc: openai.APIConnectionError) -> CompletionError:
    """Classify an ``APIConnectionError`` by its cause.

    Only a failed connect (``httpx.ConnectError``) caused by DNS resolution or
    a refused connection is a network error.  Every other transport failure
    (read/write errors, resets, dropped connections) happened after the
    request went out and is reported as no response.
    """
    causes = list(_cause_chain(exc))
    connect_error = next((c for c in causes if isinstance(c, httpx.ConnectError)), None)
    transport_error = next((c for c in causes if isinstance(c, httpx.TransportError)), None)
    message = str(transport_error) if transport_error is not None else str(exc)

    if connect_error is not None:
        for cause in _cause_chain(connect_error):
            if isinstance(cause, socket.gaierror):
                return NetworkError(DNS_FAILURE, str(connect_error))
            if isinstance(cause, ConnectionRefusedError):
                return NetworkError(CONNECTION_REFUSED, str(connect_error))

    return NoResponseError(message)


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield the exceptions chained below *exc* via ``__cause__``/``__context__``."""
    seen: set[int] = set()
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        yield cause
        cause = cause.__cause__ or cause.__context__
