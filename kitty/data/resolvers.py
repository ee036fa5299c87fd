"""Price resolution with per-lookup fallbacks.

Both resolvers always return a usable value. A failed lookup degrades to
data derived from the position itself, so valuation never has to branch
on missing market data:

  - equity: the caller-supplied reference price
  - event market: a synthetic quote whose last price equals the purchase
    price, i.e. a flat 0% return

Neither resolver retries.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any, Protocol

from kitty.config.defaults import KALSHI_DEFAULTS, YFINANCE_DEFAULTS
from kitty.data.adapters.kalshi_adapter import MarketDataError
from kitty.portfolio.models import EventMarketPosition, MarketQuote

logger = logging.getLogger(__name__)


class EquityQuoteSource(Protocol):
    async def quote(self, ticker: str) -> Mapping[str, Any]: ...


class MarketQuoteSource(Protocol):
    async def get_market(self, ticker: str) -> Any: ...


# ---------------------------------------------------------------------------
# Equity
# ---------------------------------------------------------------------------

def _usable_price(value: Any) -> float | None:
    """Return ``value`` as a float if it is a finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


async def resolve_equity_price(
    ticker: str,
    fallback_price: float,
    source: EquityQuoteSource,
    timeout: float = YFINANCE_DEFAULTS["timeout_seconds"],
) -> float:
    """Current unit price for ``ticker``, or ``fallback_price`` on any failure.

    Parameters
    ----------
    ticker : str
        Equity symbol to look up.
    fallback_price : float
        Returned unchanged when the lookup raises, times out, or has no
        numeric ``regularMarketPrice``.
    source : EquityQuoteSource
        Anything with ``async quote(ticker) -> Mapping``.
    timeout : float
        Seconds to wait for the quote.
    """
    try:
        quote = await asyncio.wait_for(source.quote(ticker), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Quote lookup for %s timed out after %.1fs", ticker, timeout)
        return fallback_price
    except Exception as e:
        logger.error("Quote lookup for %s failed: %s", ticker, e)
        return fallback_price

    price = None
    if isinstance(quote, Mapping):
        price = _usable_price(quote.get("regularMarketPrice"))
    if price is None:
        logger.warning("Unable to get price for %s, using %.4f", ticker, fallback_price)
        return fallback_price
    return price


# ---------------------------------------------------------------------------
# Event market
# ---------------------------------------------------------------------------

def fallback_quote(position: EventMarketPosition) -> MarketQuote:
    """Synthetic quote used when live market data is unavailable.

    ``last_price`` is the purchase price re-expressed in cents, so the
    resulting valuation shows flat performance. This is not market data.
    """
    return MarketQuote(
        ticker=position.ticker,
        event_ticker=position.ticker,
        title=position.position_name,
        status="unknown",
        last_price=position.purchase_price * 100,
        tick_size=1,
        is_fallback=True,
    )


def parse_market_quote(payload: Any) -> MarketQuote:
    """Validate a ``{"market": {...}}`` document and build a quote.

    ``last_price`` is in cents. Live markets quote whole cents, but any
    finite number is accepted, so fractional cents pass through unrounded.

    Raises:
        MarketDataError: if the document does not carry a market object
            with a finite numeric ``last_price`` (bools excluded) and
            string ``status`` and ``ticker`` fields.
    """
    if not isinstance(payload, Mapping):
        raise MarketDataError("market payload is not an object")
    market = payload.get("market")
    if not isinstance(market, Mapping):
        raise MarketDataError("market payload has no 'market' object")

    last_price = _usable_price(market.get("last_price"))
    if last_price is None:
        raise MarketDataError(f"invalid last_price: {market.get('last_price')!r}")
    if not isinstance(market.get("status"), str):
        raise MarketDataError(f"invalid status: {market.get('status')!r}")
    if not isinstance(market.get("ticker"), str):
        raise MarketDataError(f"invalid ticker: {market.get('ticker')!r}")

    # Null display fields fall back to model defaults.
    fields = {k: v for k, v in market.items() if v is not None}
    try:
        return MarketQuote.model_validate({**fields, "is_fallback": False})
    except ValueError as e:
        raise MarketDataError(f"market payload failed validation: {e}") from e


async def resolve_market_quote(
    market_ticker: str,
    position: EventMarketPosition,
    source: MarketQuoteSource,
    timeout: float = KALSHI_DEFAULTS["timeout_seconds"],
) -> MarketQuote:
    """Live quote for ``market_ticker``, or :func:`fallback_quote` on any failure.

    The ``timeout`` is a hard bound on the whole lookup; it cancels the
    request and triggers the fallback.
    """
    try:
        payload = await asyncio.wait_for(source.get_market(market_ticker), timeout=timeout)
        return parse_market_quote(payload)
    except asyncio.TimeoutError:
        logger.error("Market lookup for %s timed out after %.1fs", market_ticker, timeout)
    except MarketDataError as e:
        logger.error("Failed to fetch market data for %s: %s", market_ticker, e)
    except Exception as e:
        logger.error("Unexpected error fetching market data for %s: %s", market_ticker, e)
    return fallback_quote(position)
