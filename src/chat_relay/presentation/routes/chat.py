"""Chat routes: chat turn, conversation history and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger

from chat_relay.application.exceptions import EmptyQuestionError
from chat_relay.application.use_cases.chat import ChatTurnResult, ChatTurnUseCase
from chat_relay.domain.protocols import IConversationStore
from chat_relay.presentation.schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    MessageResponse,
)

router = APIRouter(tags=["chat"])


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health")
async def health():
    """Simple liveness / readiness check."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Chat turn
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={500: {"model": ErrorResponse}},
)
async def chat(request: ChatRequest, raw_request: Request):
    """Send a question and receive the assistant's reply.

    Omit ``cid`` to start a new conversation, or pass the ``cid`` returned
    by an earlier call to continue it.
    """
    uc: ChatTurnUseCase = raw_request.app.state.chat_uc

    logger.info("POST /chat | cid={} question={}", request.cid, request.question[:60])

    try:
        result: ChatTurnResult = await uc.execute(request.question, request.cid)
    except EmptyQuestionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if not result.ok:
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=result.error.message).model_dump(),
        )

    return ChatResponse(reply=result.reply, cid=result.cid)


# ---------------------------------------------------------------------------
# Conversation history
# ---------------------------------------------------------------------------


@router.get("/conversations/{cid}/messages", response_model=list[MessageResponse])
async def get_conversation_messages(cid: str, raw_request: Request):
    """Get all messages in a conversation, ordered chronologically."""
    store: IConversationStore = raw_request.app.state.store
    messages = store.list_messages(cid)
    if not messages:
        raise HTTPException(status_code=404, detail="Conversation not found or has no messages")
    return [
        MessageResponse(id=m.id, role=m.role, content=m.content, created_at=m.created_at)
        for m in messages
    ]
