"""yfinance adapter for live equity quotes.

yfinance is synchronous and has no request timeout of its own. Each
lookup runs on a daemon thread so the event loop stays free while other
positions are valued, and a lookup abandoned by the caller's timeout
never holds up loop shutdown or process exit.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable

import yfinance as yf

logger = logging.getLogger(__name__)


def _fetch_info(symbol: str) -> dict[str, Any]:
    """Blocking quote lookup. Returns the ticker's info dict (possibly empty)."""
    # yf_symbol override (e.g., BRK.B -> BRK-B)
    yf_symbol = symbol.replace(".", "-") if "." in symbol else symbol
    info = yf.Ticker(yf_symbol).info
    return dict(info or {})


def _run_detached(func: Callable[..., Any], *args: Any) -> asyncio.Future:
    """Run ``func(*args)`` on a daemon thread and return an awaitable future.

    Unlike ``asyncio.to_thread``, the worker is not part of the loop's
    default executor, so ``asyncio.run`` does not wait for it on exit.
    """
    future: concurrent.futures.Future = concurrent.futures.Future()

    def work() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func(*args))
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=work, name="yfinance-quote", daemon=True).start()
    return asyncio.wrap_future(future)


class YFinanceQuoteSource:
    """Equity quote source backed by Yahoo Finance.

    Usage::

        source = YFinanceQuoteSource()
        quote = await source.quote("SPY")
        price = quote.get("regularMarketPrice")

    Errors from yfinance propagate; callers decide how to degrade.
    """

    async def quote(self, ticker: str) -> dict[str, Any]:
        info = await _run_detached(_fetch_info, ticker)
        if info.get("regularMarketPrice") is None:
            logger.debug("No regularMarketPrice in yfinance info for %s", ticker)
        return {
            "symbol": ticker,
            "regularMarketPrice": info.get("regularMarketPrice"),
            "currency": info.get("currency"),
            "shortName": info.get("shortName"),
        }
