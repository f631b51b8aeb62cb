"""Thin ``requests`` wrapper shared by the REST providers.

Translates every transport-level failure into ``MarketDataError`` so the
provider boundary has a single exception type to handle.
"""

from __future__ import annotations

from typing import Any

import certifi
import requests

from marketquotes.errors import MarketDataError, MarketDataErrorCode


class JsonHttpClient:
    """GET-and-decode JSON with per-call timeouts.

    Args:
        provider: Provider display name used in error messages.
        headers: Default headers sent with every request.
        session: Pre-built session (tests inject a fake one).
    """

    def __init__(
        self,
        provider: str,
        headers: dict[str, str] | None = None,
        session: Any = None,
    ) -> None:
        self.provider = provider
        if session is None:
            session = requests.Session()
            session.verify = certifi.where()
        if headers:
            session.headers.update(headers)
        self.session = session

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float = 15.0,
    ) -> Any:
        try:
            resp = self.session.get(url, params=params, timeout=timeout)
        except requests.Timeout as exc:
            raise MarketDataError(
                f"{self.provider} timed out after {timeout:g}s",
                code=MarketDataErrorCode.TIMEOUT,
            ) from exc
        except requests.RequestException as exc:
            raise MarketDataError(
                f"{self.provider} request failed: {exc}",
                code=MarketDataErrorCode.TRANSPORT_ERROR,
            ) from exc

        self._check_response(resp)
        try:
            return resp.json()
        except ValueError as exc:
            raise MarketDataError(
                f"{self.provider} returned a non-JSON body",
                code=MarketDataErrorCode.MALFORMED_RESPONSE,
            ) from exc

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------ internals

    def _check_response(self, resp: Any) -> None:
        if resp.status_code == 429:
            raise MarketDataError(
                f"{self.provider} rate limited",
                code=MarketDataErrorCode.RATE_LIMITED,
                retry_after=_retry_after(resp),
            )
        if resp.status_code in (401, 403):
            raise MarketDataError(
                f"{self.provider} authentication failed",
                code=MarketDataErrorCode.AUTH_FAILED,
                retryable=False,
            )
        if resp.status_code == 404:
            raise MarketDataError(
                f"Symbol not found on {self.provider}",
                code=MarketDataErrorCode.NOT_FOUND,
            )
        if not 200 <= resp.status_code < 300:
            raise MarketDataError(
                f"{self.provider} HTTP {resp.status_code}",
                code=MarketDataErrorCode.TRANSPORT_ERROR,
            )


def _retry_after(resp: Any) -> float | None:
    value = (getattr(resp, "headers", None) or {}).get("Retry-After")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
