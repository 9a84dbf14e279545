"""Application-level exceptions.

These are business-logic errors, not HTTP errors. The presentation layer
translates them into appropriate HTTP responses.
"""


class EmptyQuestionError(ValueError):
    """Raised when the caller sends a missing or blank question."""
