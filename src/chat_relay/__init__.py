"""Chat relay: stateful conversations over a stateless chat-completion API."""

__version__ = "0.1.0"
