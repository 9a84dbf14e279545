"""Concrete adapters: SQLite conversation store and OpenAI completion client."""

from chat_relay.infrastructure.conversation_store import ConversationStore
from chat_relay.infrastructure.openai_client import OpenAICompletionClient

__all__ = ["ConversationStore", "OpenAICompletionClient"]
