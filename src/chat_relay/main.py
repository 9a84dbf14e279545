"""FastAPI application for the chat relay.

This module is a thin **presentation layer**: it wires the conversation
store, the completion client and the chat turn use case together at startup.
All business logic lives in ``chat_relay.application``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from chat_relay import __version__
from chat_relay.application.use_cases.chat import ChatTurnUseCase
from chat_relay.config import get_settings
from chat_relay.domain.errors import StoreError
from chat_relay.infrastructure.conversation_store import ConversationStore
from chat_relay.infrastructure.openai_client import OpenAICompletionClient
from chat_relay.logging_config import setup_logging
from chat_relay.presentation.routes import chat_router
from chat_relay.telemetry import setup_telemetry

# Configure loguru before anything else
setup_logging()


# ---------------------------------------------------------------------------
# Lifespan: initialise shared resources once at startup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up and tear down services around the application lifetime."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json=settings.log_json)
    settings.validate_runtime()

    store = ConversationStore(db_path=settings.chat_db_path)
    store.connect()

    completion_client = OpenAICompletionClient(settings)

    app.state.settings = settings
    app.state.store = store
    app.state.completion_client = completion_client
    app.state.chat_uc = ChatTurnUseCase(
        store=store,
        completion_client=completion_client,
        settings=settings,
    )

    logger.info("Application startup complete | model={}", settings.openai_model)
    yield

    await completion_client.close()
    store.close()
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Chat Relay",
    description="Stateful conversations relayed to an OpenAI chat model.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Report conversation store failures as a single error string."""
    logger.opt(exception=exc).error(
        "{} {} | conversation store failure", request.method, request.url.path
    )
    return JSONResponse(status_code=500, content={"error": f"Conversation store error: {exc}"})


# Instrument FastAPI with observability (no-op when OBSERVABILITY=off)
setup_telemetry(app, get_settings())


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def run() -> None:
    import uvicorn

    uvicorn.run("chat_relay.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
