"""Application layer: prompt window, error classification and the chat turn use case."""
