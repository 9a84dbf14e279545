"""Prompt window construction.

Turns the tail of an unbounded conversation log into the exact, bounded
message list sent to the completion service.
"""

from __future__ import annotations

from chat_relay.domain.models import ChatMessage
from chat_relay.domain.protocols import IConversationStore

SYSTEM_PROMPT = "You are a helpful assistant."

MAX_MESSAGES_PER_CHAT = 40


class PromptWindowBuilder:
    """Builds ``[system, *most recent messages oldest-first]`` for a conversation."""

    def __init__(
        self,
        store: IConversationStore,
        max_messages: int = MAX_MESSAGES_PER_CHAT,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        if max_messages <= 0:
            raise ValueError("max_messages must be a positive integer")
        self.store = store
        self.max_messages = max_messages
        self.system_prompt = system_prompt

    def build(self, conversation_id: str) -> list[ChatMessage]:
        """Return the prompt window for *conversation_id*.

        The store returns the tail newest-first; the window must be
        chronological, so the tail is reversed before use.  An empty
        conversation yields just the system message.
        """
        newest_first = self.store.recent_messages(conversation_id, self.max_messages)
        window = [ChatMessage(role="system", content=self.system_prompt)]
        window.extend(
            ChatMessage(role=m.role, content=m.content) for m in reversed(newest_first)
        )
        return window
