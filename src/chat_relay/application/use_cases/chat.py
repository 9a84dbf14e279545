"""Chat turn use case: orchestrates one question/answer exchange.

This module contains all business logic for handling a chat turn:
input validation, conversation ID assignment, persistence of both sides of
the turn, prompt window construction, the completion call and error
classification.  It has **no dependency on FastAPI** and can be invoked from
any transport layer (HTTP, CLI, ...).
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from chat_relay.application.error_classifier import ClassifiedError, classify_completion_error
from chat_relay.application.exceptions import EmptyQuestionError
from chat_relay.application.prompt_window import PromptWindowBuilder
from chat_relay.config import Settings
from chat_relay.domain.errors import CompletionError
from chat_relay.domain.models import CompletionOptions
from chat_relay.domain.protocols import ICompletionClient, IConversationStore
from chat_relay.logging_config import conversation_context


def new_conversation_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChatTurnResult:
    """Outcome of a single turn: either a reply with its conversation ID, or an error."""

    reply: str | None = None
    cid: str | None = None
    error: ClassifiedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Use case
# ---------------------------------------------------------------------------


class ChatTurnUseCase:
    """Runs one chat turn against the conversation store and completion service.

    Parameters
    ----------
    store:
        Append-only conversation log.
    completion_client:
        Chat-completion service; raises ``CompletionError`` variants on failure.
    settings:
        Supplies the model name, sampling temperature and window size.
    id_factory:
        Generates identifiers for new conversations.
    """

    def __init__(
        self,
        store: IConversationStore,
        completion_client: ICompletionClient,
        settings: Settings,
        id_factory: Callable[[], str] = new_conversation_id,
    ) -> None:
        self.store = store
        self.completion_client = completion_client
        self.window_builder = PromptWindowBuilder(store, max_messages=settings.max_messages_per_chat)
        self.model = settings.openai_model
        self.options = CompletionOptions(temperature=settings.temperature)
        self.id_factory = id_factory

    async def execute(self, question: str, cid: str | None = None) -> ChatTurnResult:
        """Run a single chat turn.

        The user message is persisted before the model is called, so a failed
        turn still records what was asked.  The assistant reply is persisted
        only on success.

        Returns:
            A ``ChatTurnResult`` carrying the reply and conversation ID, or a
            classified error when the completion call fails.

        Raises:
            EmptyQuestionError: If *question* is missing or blank.
            StoreError: If the conversation store cannot be read or written.
        """
        if not isinstance(question, str) or not question.strip():
            raise EmptyQuestionError("question must be a non-empty string")

        conversation_id = cid or self.id_factory()
        with conversation_context(conversation_id):
            return await self._run_turn(conversation_id, question)

    async def _run_turn(self, conversation_id: str, question: str) -> ChatTurnResult:
        self.store.append(conversation_id, "user", question)
        window = self.window_builder.build(conversation_id)

        t0 = time.perf_counter()
        try:
            reply = await self.completion_client.complete(self.model, window, self.options)
        except CompletionError as exc:
            classified = classify_completion_error(exc)
            logger.error(
                "Chat turn failed | category={} | error={!r}",
                classified.category.value,
                exc,
            )
            return ChatTurnResult(error=classified)

        latency = int((time.perf_counter() - t0) * 1000)
        self.store.append(conversation_id, "assistant", reply.content)

        logger.info("Chat turn completed | window={} | latency={}ms", len(window), latency)
        return ChatTurnResult(reply=reply.content, cid=conversation_id)
