"""Error types raised by the relay's collaborators.

Completion failures are a closed set of tagged variants produced by the
completion client.  The error classifier matches on them exhaustively, so a
new variant must be handled there too.
"""

from __future__ import annotations

from typing import Any


class CompletionError(Exception):
    """Base class for every failure of a chat-completion call."""


class HttpError(CompletionError):
    """The service answered with a non-2xx HTTP status."""

    def __init__(self, status: int, status_text: str = "", payload: Any = None) -> None:
        self.status = status
        self.status_text = status_text
        self.payload = payload
        super().__init__(f"HTTP {status} {status_text}".rstrip())


class NoResponseError(CompletionError):
    """The request was sent but no response arrived."""

    def __init__(self, message: str = "no response received") -> None:
        self.message = message
        super().__init__(message)


class NetworkError(CompletionError):
    """A connection-level failure identified by an errno-style code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class SetupError(CompletionError):
    """The request could not be built or sent."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StoreError(Exception):
    """The conversation store failed to read or write."""
