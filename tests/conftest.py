"""Shared test fixtures for Kitty.

Provides position records, market payloads, and fake quote sources so
tests never touch the network.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from kitty.config.schema import KittyConfig
from kitty.portfolio.models import (
    CashPosition,
    EventMarketPosition,
    StockPosition,
)

# ---------------------------------------------------------------------------
# Fake sources
# ---------------------------------------------------------------------------

class FakeEquitySource:
    """Equity source returning fixed prices; tickers in ``errors`` raise."""

    def __init__(
        self,
        prices: dict[str, Any] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.prices = prices or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[str] = []

    async def quote(self, ticker: str) -> dict[str, Any]:
        self.calls.append(ticker)
        if ticker in self.delays:
            await asyncio.sleep(self.delays[ticker])
        if ticker in self.errors:
            raise self.errors[ticker]
        if ticker not in self.prices:
            return {}
        return {"regularMarketPrice": self.prices[ticker]}


class FakeMarketSource:
    """Market source returning canned payloads; tickers in ``errors`` raise."""

    def __init__(
        self,
        payloads: dict[str, Any] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.payloads = payloads or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[str] = []

    async def get_market(self, ticker: str) -> Any:
        self.calls.append(ticker)
        if ticker in self.delays:
            await asyncio.sleep(self.delays[ticker])
        if ticker in self.errors:
            raise self.errors[ticker]
        return self.payloads[ticker]


def market_payload(ticker: str, last_price: Any = 40, status: str = "active", **extra: Any) -> dict:
    """Build a ``{"market": {...}}`` document like the Kalshi API returns."""
    market = {
        "ticker": ticker,
        "event_ticker": ticker.rsplit("-", 1)[0],
        "title": f"Market {ticker}",
        "status": status,
        "last_price": last_price,
        "yes_bid": 39,
        "yes_ask": 41,
        "volume": 1200,
        "liquidity": 50000,
        "notional_value_dollars": [1, 0],
    }
    market.update(extra)
    return {"market": market}


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------

@pytest.fixture
def cash_position() -> CashPosition:
    return CashPosition(id=0, type="cash", position_name="Cash", person_name="Danny", amount=35)


@pytest.fixture
def stock_position() -> StockPosition:
    return StockPosition(
        id=1,
        type="stock",
        position_name="$SPY",
        person_name="Jordan",
        ticker="SPY",
        purchase_price=10,
        amount=2,
    )


@pytest.fixture
def yes_position() -> EventMarketPosition:
    return EventMarketPosition(
        id=2,
        type="event-market",
        position_name="Will X happen",
        person_name="Oliver",
        ticker="KXTEST-25-YES",
        purchase_price=0.30,
        contracts=100,
        side="yes",
        fees=1,
        extra_cash=0.50,
    )


@pytest.fixture
def no_position() -> EventMarketPosition:
    return EventMarketPosition(
        id=3,
        type="event-market",
        position_name="Will Y happen - No",
        person_name="Jon",
        ticker="KXTEST-25-NO",
        purchase_price=0.80,
        contracts=43,
        side="no",
        fees=0.49,
        extra_cash=0.22,
    )


@pytest.fixture
def raw_positions() -> list[dict]:
    """Positions as they appear in the shared positions file (camelCase)."""
    return [
        {"id": 0, "type": "cash", "positionName": "Cash", "amount": 35, "personName": "Danny"},
        {
            "id": 3, "type": "stock", "positionName": "Raytheon Technologies",
            "purchasePrice": 156.92, "amount": 0.223043, "ticker": "RTX",
            "personName": "Brian", "link": "https://finance.yahoo.com/quote/RTX", "extraCash": 0,
        },
        {
            "id": 4, "type": "kalshi", "positionName": "Carpenter >= 2 weeks at #1",
            "purchasePrice": 0.31, "contracts": 106, "personName": "Oliver",
            "ticker": "KXCARPENTERWEEKSNUM1-26JAN01-2", "extraCash": 0.02, "fees": 1.63,
            "side": "yes",
        },
    ]


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@pytest.fixture
def test_config() -> KittyConfig:
    """Default config with a short cache TTL."""
    return KittyConfig(portfolio={"cache_ttl_seconds": 60})
