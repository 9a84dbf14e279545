"""Domain service interfaces (ports).

The application layer depends on these abstractions, not on the SQLite store
or the OpenAI client directly.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chat_relay.domain.models import ChatMessage, CompletionOptions, Message

# ---------------------------------------------------------------------------
# Conversation store
# ---------------------------------------------------------------------------


@runtime_checkable
class IConversationStore(Protocol):
    """Append-only, queryable log of messages keyed by conversation ID.

    Implementations: ConversationStore (SQLite-backed).
    """

    def append(self, conversation_id: str, role: str, content: str) -> Message:
        """Persist a message, assigning its ID and creation timestamp.

        Raises:
            StoreError: If the write fails.
        """
        ...

    def recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """Return up to *limit* messages, newest first."""
        ...

    def list_messages(self, conversation_id: str) -> list[Message]:
        """Return the whole conversation, oldest first."""
        ...


# ---------------------------------------------------------------------------
# Completion service
# ---------------------------------------------------------------------------


@runtime_checkable
class ICompletionClient(Protocol):
    """A single request/response call to a remote chat-completion service.

    Implementations: OpenAICompletionClient.
    """

    async def complete(
        self,
        model: str,
        messages: list[ChatMessage],
        options: CompletionOptions,
    ) -> ChatMessage:
        """Return the assistant reply.

        Raises:
            CompletionError: One of the variants in ``domain.errors``.
        """
        ...
