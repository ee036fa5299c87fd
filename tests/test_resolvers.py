"""Tests for kitty.data.resolvers: price lookups and their fallbacks."""

from __future__ import annotations

import asyncio
import math

import pytest
from conftest import FakeEquitySource, FakeMarketSource, market_payload

from kitty.data.adapters.kalshi_adapter import MarketDataError
from kitty.data.resolvers import (
    fallback_quote,
    parse_market_quote,
    resolve_equity_price,
    resolve_market_quote,
)

# ---------------------------------------------------------------------------
# Equity
# ---------------------------------------------------------------------------

class TestResolveEquityPrice:
    def test_returns_live_price(self):
        source = FakeEquitySource(prices={"SPY": 651.2})
        assert asyncio.run(resolve_equity_price("SPY", 600.0, source)) == 651.2
        assert source.calls == ["SPY"]

    def test_int_price_returned_as_float(self):
        source = FakeEquitySource(prices={"SPY": 650})
        price = asyncio.run(resolve_equity_price("SPY", 600.0, source))
        assert price == 650.0
        assert isinstance(price, float)

    def test_exception_returns_fallback(self):
        source = FakeEquitySource(errors={"SPY": ConnectionError("down")})
        assert asyncio.run(resolve_equity_price("SPY", 648.51, source)) == 648.51

    def test_missing_price_returns_fallback(self):
        source = FakeEquitySource()
        assert asyncio.run(resolve_equity_price("NOPE", 13.37, source)) == 13.37

    @pytest.mark.parametrize("bad", [None, "651.2", True, float("nan"), float("inf")])
    def test_non_numeric_price_returns_fallback(self, bad):
        source = FakeEquitySource(prices={"SPY": bad})
        price = asyncio.run(resolve_equity_price("SPY", 648.51, source))
        assert price == 648.51
        assert not math.isnan(price)

    def test_timeout_returns_fallback(self):
        source = FakeEquitySource(prices={"SPY": 700.0}, delays={"SPY": 1.0})
        price = asyncio.run(resolve_equity_price("SPY", 648.51, source, timeout=0.01))
        assert price == 648.51

    def test_non_mapping_quote_returns_fallback(self):
        class ListSource:
            async def quote(self, ticker):
                return [1, 2, 3]

        assert asyncio.run(resolve_equity_price("SPY", 5.0, ListSource())) == 5.0


# ---------------------------------------------------------------------------
# Fallback quote
# ---------------------------------------------------------------------------

class TestFallbackQuote:
    def test_last_price_is_purchase_price_in_cents(self, yes_position):
        quote = fallback_quote(yes_position)
        assert quote.last_price == yes_position.purchase_price * 100

    def test_copies_identity(self, yes_position):
        quote = fallback_quote(yes_position)
        assert quote.ticker == yes_position.ticker
        assert quote.event_ticker == yes_position.ticker
        assert quote.title == yes_position.position_name
        assert quote.status == "unknown"
        assert quote.is_fallback

    def test_other_numbers_zero(self, yes_position):
        quote = fallback_quote(yes_position)
        assert quote.yes_bid == quote.yes_ask == quote.no_bid == quote.no_ask == 0
        assert quote.volume == quote.liquidity == quote.open_interest == 0
        assert quote.tick_size == 1

    def test_deterministic(self, yes_position):
        assert fallback_quote(yes_position) == fallback_quote(yes_position)


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

class TestParseMarketQuote:
    def test_fractional_cents_accepted(self):
        quote = parse_market_quote(market_payload("KXA-1", last_price=40.5))
        assert quote.last_price == 40.5
        assert quote.yes_price == pytest.approx(0.405)

    def test_valid_payload(self):
        quote = parse_market_quote(market_payload("KXA-1", last_price=62))
        assert quote.ticker == "KXA-1"
        assert quote.last_price == 62
        assert quote.status == "active"
        assert quote.volume == 1200
        assert not quote.is_fallback

    def test_null_display_fields_use_defaults(self):
        quote = parse_market_quote(market_payload("KXA-1", close_time=None, volume=None))
        assert quote.close_time == ""
        assert quote.volume == 0

    def test_ignores_unknown_fields(self):
        quote = parse_market_quote(market_payload("KXA-1", rules_primary="Resolves yes if..."))
        assert quote.ticker == "KXA-1"

    @pytest.mark.parametrize("payload", [
        None,
        [],
        "market",
        {},
        {"market": None},
        {"market": "KXA-1"},
        {"market": {"ticker": "KXA-1", "status": "active"}},
        {"market": {"ticker": "KXA-1", "status": "active", "last_price": "40"}},
        {"market": {"ticker": "KXA-1", "status": "active", "last_price": True}},
        {"market": {"ticker": "KXA-1", "status": 3, "last_price": 40}},
        {"market": {"status": "active", "last_price": 40}},
    ])
    def test_schema_deviation_raises(self, payload):
        with pytest.raises(MarketDataError):
            parse_market_quote(payload)


# ---------------------------------------------------------------------------
# Event market resolution
# ---------------------------------------------------------------------------

class TestResolveMarketQuote:
    def test_live_quote(self, yes_position):
        source = FakeMarketSource(payloads={yes_position.ticker: market_payload(yes_position.ticker, 55)})
        quote = asyncio.run(resolve_market_quote(yes_position.ticker, yes_position, source))
        assert quote.last_price == 55
        assert not quote.is_fallback

    def test_source_error_falls_back(self, yes_position):
        source = FakeMarketSource(errors={yes_position.ticker: MarketDataError("Kalshi API error: 503")})
        quote = asyncio.run(resolve_market_quote(yes_position.ticker, yes_position, source))
        assert quote.is_fallback
        assert quote.last_price == yes_position.purchase_price * 100

    def test_unexpected_error_falls_back(self, yes_position):
        source = FakeMarketSource(errors={yes_position.ticker: KeyError("boom")})
        quote = asyncio.run(resolve_market_quote(yes_position.ticker, yes_position, source))
        assert quote.is_fallback

    def test_malformed_payload_falls_back(self, yes_position):
        source = FakeMarketSource(payloads={yes_position.ticker: {"markets": []}})
        quote = asyncio.run(resolve_market_quote(yes_position.ticker, yes_position, source))
        assert quote.is_fallback
        assert quote.status == "unknown"

    def test_timeout_falls_back(self, yes_position):
        source = FakeMarketSource(
            payloads={yes_position.ticker: market_payload(yes_position.ticker, 90)},
            delays={yes_position.ticker: 1.0},
        )
        quote = asyncio.run(
            resolve_market_quote(yes_position.ticker, yes_position, source, timeout=0.01)
        )
        assert quote.is_fallback
