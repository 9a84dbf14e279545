"""HTTP request/response schemas (Pydantic models) for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Chat turn
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """Request body for POST /chat."""

    question: str = Field(description="The new user message")
    cid: str | None = Field(
        default=None,
        description="Existing conversation ID to continue. Omit to start a new conversation.",
    )


class ChatResponse(BaseModel):
    """Successful response from POST /chat."""

    reply: str = Field(description="The assistant's reply")
    cid: str = Field(description="The conversation ID (new or existing)")


class ErrorResponse(BaseModel):
    """Body returned with a 500 when a turn cannot be completed."""

    error: str


# ---------------------------------------------------------------------------
# Conversation history
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """A single persisted message."""

    id: str
    role: str
    content: str
    created_at: str
