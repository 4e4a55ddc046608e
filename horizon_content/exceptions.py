"""Horizon content exception classes."""

from datetime import datetime
from typing import Any


class HorizonError(Exception):
    """Base exception for all horizon_content errors."""

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"[{code}] {message}")


class ConfigurationError(HorizonError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class RateLimitedError(HorizonError):
    """Raised when the upstream API refuses requests until a reset time."""

    def __init__(
        self,
        code: str,
        message: str,
        reset_at: datetime | None = None,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.reset_at = reset_at
        self.retry_after = retry_after


class NotReadyError(HorizonError):
    """Raised on HTTP 202: the upstream accepted the request but is still computing."""

    pass


class EmptyResultError(NotReadyError):
    """Raised when an aggregation endpoint answers with an empty result."""

    def __init__(self, code: str, message: str, result: Any = None) -> None:
        super().__init__(code, message)
        self.result = result


class TransientUpstreamError(HorizonError):
    """Raised on network errors and 5xx responses."""

    pass


class UpstreamUnavailableError(HorizonError):
    """Raised on a non-2xx response that is not worth retrying."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.status_code = status_code


class EnrichmentError(HorizonError):
    """Raised when optional per-contributor detail cannot be fetched."""

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__("ENRICHMENT_FAILED", message)
        self.identifier = identifier


class RetryExhaustedError(HorizonError):
    """Raised when an operation kept failing until the attempt budget ran out."""

    def __init__(self, last_error: Exception, attempts: int) -> None:
        super().__init__(
            "RETRY_EXHAUSTED",
            f"gave up after {attempts} attempt(s): {last_error}",
            getattr(last_error, "request_id", None),
        )
        self.last_error = last_error
        self.attempts = attempts


class MalformedDocumentError(HorizonError):
    """Raised when a Markdown document lacks the required front matter."""

    def __init__(self, slug: str, message: str) -> None:
        super().__init__("MALFORMED_DOCUMENT", message)
        self.slug = slug


class NoDataAvailableError(HorizonError):
    """Nothing is cached and the live fetch failed."""

    def __init__(self, message: str = "no data available, try again later") -> None:
        super().__init__("NO_DATA", message)
