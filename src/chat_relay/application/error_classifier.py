"""Maps completion failures onto a small, stable set of user-facing errors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from chat_relay.domain.errors import (
    CompletionError,
    HttpError,
    NetworkError,
    NoResponseError,
    SetupError,
)

INVALID_CREDENTIAL_MESSAGE = (
    "Unauthorized: Invalid OpenAI API key, please check the OPENAI_KEY setting "
    "in your environment configuration."
)
NO_RESPONSE_MESSAGE = "No response received from the server"

NETWORK_UNREACHABLE_CODES = frozenset({"ENOTFOUND", "ECONNREFUSED"})


class ErrorCategory(StrEnum):
    INVALID_CREDENTIAL = "invalid_credential"
    UPSTREAM_APPLICATION_ERROR = "upstream_application_error"
    UPSTREAM_HTTP_ERROR = "upstream_http_error"
    NO_RESPONSE = "no_response"
    NETWORK_UNREACHABLE = "network_unreachable"
    REQUEST_SETUP_ERROR = "request_setup_error"


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    message: str


def classify_completion_error(error: CompletionError) -> ClassifiedError:
    """Return the single user-facing error for a completion failure.

    Branches are checked in order and the first match wins: a 401 is always
    reported as a bad credential, even when the body carries an error message.
    """
    match error:
        case HttpError(status=401):
            return ClassifiedError(ErrorCategory.INVALID_CREDENTIAL, INVALID_CREDENTIAL_MESSAGE)
        case HttpError(status=status, status_text=status_text, payload=payload):
            upstream = _payload_error_message(payload)
            if upstream:
                return ClassifiedError(ErrorCategory.UPSTREAM_APPLICATION_ERROR, upstream)
            return ClassifiedError(
                ErrorCategory.UPSTREAM_HTTP_ERROR,
                f"Request failed with status code {status}: {status_text}",
            )
        case NoResponseError():
            return ClassifiedError(ErrorCategory.NO_RESPONSE, NO_RESPONSE_MESSAGE)
        case NetworkError(code=code, message=message) if code in NETWORK_UNREACHABLE_CODES:
            return ClassifiedError(ErrorCategory.NETWORK_UNREACHABLE, f"Network error: {message}")
        case NetworkError(message=message) | SetupError(message=message):
            return _setup_error(message)
        case _:
            return _setup_error(str(error))


def _payload_error_message(payload: Any) -> str | None:
    """Extract ``payload["error"]["message"]`` if present and a non-empty string."""
    if not isinstance(payload, dict):
        return None
    inner = payload.get("error")
    if not isinstance(inner, dict):
        return None
    message = inner.get("message")
    return message if isinstance(message, str) and message else None


def _setup_error(message: str) -> ClassifiedError:
    return ClassifiedError(ErrorCategory.REQUEST_SETUP_ERROR, f"Request setup error: {message}")
