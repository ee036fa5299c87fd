"""Kalshi trade API client for event-market quotes.

Fetches ``GET {base_url}/markets/{ticker}``, which returns a document of
the form ``{"market": {...}}``. Transport-level problems (timeout,
connection error, non-2xx status, empty or non-JSON body) are raised as
:class:`MarketDataError`; schema checks on the decoded document are left
to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from kitty.config.defaults import KALSHI_DEFAULTS

logger = logging.getLogger(__name__)

_HEADERS = {"Accept": "application/json"}


class MarketDataError(RuntimeError):
    """A market lookup could not produce a usable response."""


class KalshiClient:
    """Async Kalshi market data client.

    Usage::

        async with KalshiClient() as kalshi:
            payload = await kalshi.get_market("KXTIME-25-PLEOXIV")

    Parameters:
        base_url: Trade API root (no trailing slash).
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (tests inject one
            with a mock transport). A client passed in is not closed by
            :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str = KALSHI_DEFAULTS["base_url"],
        timeout: float = KALSHI_DEFAULTS["timeout_seconds"],
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=_HEADERS,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "KalshiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_market(self, ticker: str) -> Any:
        """Fetch the raw market document for ``ticker``.

        Raises:
            MarketDataError: on timeout, network failure, non-2xx status,
                empty body, or a body that is not valid JSON.
        """
        url = f"{self.base_url}/markets/{ticker}"
        try:
            resp = await self._client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise MarketDataError(f"Kalshi request timed out for {ticker}") from e
        except httpx.HTTPError as e:
            raise MarketDataError(f"Kalshi request failed for {ticker}: {e}") from e

        if not resp.is_success:
            raise MarketDataError(f"Kalshi API error: {resp.status_code}")
        if not resp.content or not resp.content.strip():
            raise MarketDataError(f"Kalshi API returned an empty body for {ticker}")

        try:
            return resp.json()
        except ValueError as e:
            raise MarketDataError(f"Kalshi API returned malformed JSON for {ticker}") from e
