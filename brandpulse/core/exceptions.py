"""Application exception hierarchy.

HTTP-facing errors carry a status code and are rendered by the FastAPI
handler in ``brandpulse.main``. Pipeline errors (provider, persistence) are
caught inside the pipeline and turned into execution records or log lines.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ProviderError(Exception):
    """LLM provider call failed.

    ``code`` is one of: network, timeout, rate_limited, server_error, auth,
    bad_request, empty_answer, missing_credential, unsupported_provider.
    ``retryable`` tells the adapter whether another attempt may succeed.
    """

    def __init__(
        self,
        message: str,
        code: str = "network",
        retryable: bool = False,
        status_code: int = 0,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.status_code = status_code
        # Filled in by the adapter once the retry loop / model chain gives up
        self.attempts = 0
        self.models_tried: list[str] = []

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, retryable={self.retryable}, message={self.message!r})"


class PersistenceError(Exception):
    """Storage write failed (execution insert or catalog upsert)."""
