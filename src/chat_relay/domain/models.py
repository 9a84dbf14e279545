"""Domain entities and value objects.

These are the core data structures of the relay, independent of any
infrastructure or framework concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]

ROLES: tuple[str, ...] = ("system", "user", "assistant")


# ---------------------------------------------------------------------------
# Persisted conversation log entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Message:
    """A single persisted turn. Never updated once written."""

    id: str
    conversation_id: str
    role: str
    content: str
    created_at: str


# ---------------------------------------------------------------------------
# Prompt window element / completion reply
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    """A role/content pair as sent to (and returned by) the completion service."""

    role: Role = Field(description="Message role: 'system', 'user' or 'assistant'")
    content: str = Field(description="Message content")


@dataclass(frozen=True)
class CompletionOptions:
    temperature: float = 1.0
    candidate_count: int = 1
    stream: bool = False
