"""Exception hierarchy for the chat pipeline."""

from __future__ import annotations

from .constants import RATELIMIT_ERROR_CODE


class RAGChatError(Exception):
    """Base class for all errors raised by ragchat."""


class ConfigurationError(RAGChatError):
    """Raised at startup or construction when a required collaborator is missing."""


class RateLimited(RAGChatError):
    """Raised when the rate limiter rejects a chat request.

    ``reset`` is the epoch timestamp (milliseconds) at which the
    session may retry, or ``None`` when the limiter did not report one.
    """

    code = RATELIMIT_ERROR_CODE

    def __init__(self, message: str, *, reset: int | None = None) -> None:
        super().__init__(message)
        self.reset = reset


class RetrievalError(RAGChatError):
    """Raised when the vector store query fails."""


class HistoryStoreError(RAGChatError):
    """Raised when the history backend cannot be read or written."""


class ModelError(RAGChatError):
    """Raised when the model produces output that is not text."""
