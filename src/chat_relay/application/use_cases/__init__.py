"""Use-case layer: business logic decoupled from the HTTP transport."""

from chat_relay.application.use_cases.chat import ChatTurnResult, ChatTurnUseCase

__all__ = ["ChatTurnResult", "ChatTurnUseCase"]
