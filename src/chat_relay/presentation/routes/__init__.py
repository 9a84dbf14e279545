"""FastAPI routers."""

from chat_relay.presentation.routes.chat import router as chat_router

__all__ = ["chat_router"]
