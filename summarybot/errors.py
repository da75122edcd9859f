
import asyncio
from typing import Optional

import httpx
import openai

# match timeouts first: openai.APITimeoutError and httpx.ConnectTimeout are also connection errors
TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException, openai.APITimeoutError)
CONNECTION_ERRORS = (ConnectionError, httpx.TransportError, openai.APIConnectionError)


class ChatError(Exception):
    """Base class for every error the chat service turns into a JSON envelope."""


class ProviderError(ChatError):
    """
    Upstream generative-AI failure.

    Carries whatever the provider told us: an HTTP-like ``status``, a short
    ``error_type`` and the human readable ``message``.
    """

    def __init__(self, status: int = 500, error_type: str = "unknown_error",
                 message: str = "Unknown error occurred"):
        self.status = status
        self.error_type = error_type
        self.message = message
        super().__init__(f"{error_type}: {message}")

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ProviderError":
        """Normalize an exception raised by a LangChain chat model integration."""
        if isinstance(exc, ProviderError):
            return exc

        status = _status_of(exc)
        error_type: Optional[str] = None
        message: Optional[str] = None

        body = getattr(exc, "body", None)
        if isinstance(body, dict):
            err = body.get("error", body)
            if isinstance(err, dict):
                error_type = err.get("type") or err.get("status")
                message = err.get("message")

        if isinstance(exc, TIMEOUT_ERRORS):
            error_type = error_type or "timeout"
            status = status or 408
        elif isinstance(exc, CONNECTION_ERRORS):
            error_type = error_type or "connection_error"
            status = status or 503

        return cls(
            status=status or 500,
            error_type=error_type or type(exc).__name__,
            message=message or str(exc) or "Unknown error occurred",
        )


class StoreError(ChatError):
    """Persistence or read failure in the conversation store."""


class ValidationError(ChatError):
    """Empty or missing user input."""


def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None
