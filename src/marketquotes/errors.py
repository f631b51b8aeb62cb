"""Market data error types."""

from __future__ import annotations

from enum import Enum


class MarketDataErrorCode(Enum):
    """Error classification codes."""

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_RESPONSE = "malformed_response"
    VALIDATION_FAILED = "validation_failed"
    NO_DATA = "no_data"


class MarketDataError(Exception):
    """Market data exception raised inside a provider.

    Providers raise this while talking to their backend; the provider
    boundary (``BaseQuoteProvider``) turns it into ``None`` / an omitted
    symbol / an empty series, so it never reaches callers of the public API.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether another provider may still succeed.
        retry_after: Seconds the provider asked us to back off, when it said.
    """

    def __init__(
        self,
        message: str,
        code: MarketDataErrorCode = MarketDataErrorCode.PROVIDER_ERROR,
        retryable: bool = True,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.retry_after = retry_after
