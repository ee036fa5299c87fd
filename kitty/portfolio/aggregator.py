"""Portfolio aggregation: value every position concurrently.

All valuations are started together on the event loop and awaited as a
group. A position whose valuation fails is replaced by a flat, degraded
entry, so the snapshot always has one entry per input record in input
order.

Integration::

    snapshot = await build_portfolio(positions, equity_source, market_source)

or, from synchronous code, :class:`PortfolioService` which also owns the
data sources and a time-bounded snapshot cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from kitty.config.defaults import KALSHI_DEFAULTS, YFINANCE_DEFAULTS
from kitty.data.resolvers import (
    EquityQuoteSource,
    MarketQuoteSource,
    fallback_quote,
    resolve_equity_price,
    resolve_market_quote,
)
from kitty.portfolio.models import (
    LEGACY_TYPE_ALIASES,
    POSITION_TYPES,
    CashPosition,
    EventMarketPosition,
    PortfolioSnapshot,
    Position,
    StockPosition,
    ValuedPosition,
)
from kitty.portfolio.valuation import (
    UnknownPositionTypeError,
    degraded_valuation,
    value_position,
)

logger = logging.getLogger(__name__)

_POSITION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Position)


def coerce_position(record: Any) -> Any:
    """Parse a raw mapping into a Position model; models pass through.

    Raises:
        UnknownPositionTypeError: if the record's type tag is not recognized.
        ValidationError: if the record is otherwise malformed.
    """
    if isinstance(record, (CashPosition, StockPosition, EventMarketPosition)):
        return record
    if isinstance(record, Mapping):
        tag = record.get("type")
        if tag not in (*POSITION_TYPES, *LEGACY_TYPE_ALIASES):
            raise UnknownPositionTypeError(f"Unknown position type: {tag!r}")
    return _POSITION_ADAPTER.validate_python(record)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _value_one(
    record: Any,
    equity_source: EquityQuoteSource | None,
    market_source: MarketQuoteSource | None,
    equity_timeout: float,
    market_timeout: float,
) -> ValuedPosition:
    position = coerce_position(record)

    if isinstance(position, StockPosition):
        if equity_source is None:
            return value_position(position, position.purchase_price)
        price = await resolve_equity_price(
            position.ticker, position.purchase_price, equity_source, timeout=equity_timeout,
        )
        return value_position(position, price)

    if isinstance(position, EventMarketPosition):
        if market_source is None:
            return value_position(position, fallback_quote(position))
        quote = await resolve_market_quote(
            position.ticker, position, market_source, timeout=market_timeout,
        )
        return value_position(position, quote)

    return value_position(position)


def _degrade(record: Any, reason: str) -> ValuedPosition:
    """Degraded entry for ``record``; never raises."""
    try:
        return degraded_valuation(record, reason)
    except Exception as e:
        logger.error("Could not build degraded valuation: %s", e)
        return ValuedPosition(
            id=-1,
            type="unknown",
            position_name="",
            current_price=0.0,
            current_value=0.0,
            original_value=0.0,
            total_return=0.0,
            error=reason,
            position=record,
        )


async def build_portfolio(
    positions: Iterable[Any],
    equity_source: EquityQuoteSource | None = None,
    market_source: MarketQuoteSource | None = None,
    equity_timeout: float = YFINANCE_DEFAULTS["timeout_seconds"],
    market_timeout: float = KALSHI_DEFAULTS["timeout_seconds"],
) -> PortfolioSnapshot:
    """Value every position and assemble a snapshot.

    Parameters
    ----------
    positions : Iterable
        Position models or raw position mappings, in display order.
    equity_source : EquityQuoteSource | None
        Live equity quotes. If None, stocks are priced at purchase price.
    market_source : MarketQuoteSource | None
        Live event-market quotes. If None, event markets use the fallback
        quote.
    equity_timeout, market_timeout : float
        Per-lookup timeouts in seconds.

    Returns
    -------
    PortfolioSnapshot
        One valued position per input record, in input order. Never raises.
    """
    try:
        records = list(positions)
    except Exception as e:
        logger.error("Position list is unusable, returning empty snapshot: %s", e)
        return PortfolioSnapshot(positions=(), last_updated=_now_iso())

    results = await asyncio.gather(
        *(
            _value_one(record, equity_source, market_source, equity_timeout, market_timeout)
            for record in records
        ),
        return_exceptions=True,
    )

    valued: list[ValuedPosition] = []
    for record, result in zip(records, results):
        if isinstance(result, ValuedPosition):
            valued.append(result)
            continue
        if isinstance(result, ValidationError):
            reason = f"Invalid position record: {result.error_count()} validation error(s)"
        else:
            reason = str(result) or type(result).__name__
        logger.error("Valuation failed for position %r: %s", _record_id(record), reason)
        valued.append(_degrade(record, reason))

    n_degraded = sum(1 for v in valued if v.is_degraded)
    if n_degraded:
        logger.warning("Portfolio built with %d/%d degraded positions", n_degraded, len(valued))

    return PortfolioSnapshot(positions=tuple(valued), last_updated=_now_iso())


def _record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("id")
    return getattr(record, "id", None)


# ---------------------------------------------------------------------------
# Cached service
# ---------------------------------------------------------------------------

def snapshot_key(records: Iterable[Any]) -> str | None:
    """Content key for a position list, or None if it cannot be keyed.

    Lists with the same records in the same order share a key.
    """
    parts = [
        r.model_dump(mode="json", by_alias=True) if isinstance(r, BaseModel) else r
        for r in records
    ]
    try:
        return json.dumps(parts, sort_keys=True, default=repr)
    except (TypeError, ValueError):
        return None


class SnapshotCache:
    """Hold the latest snapshot for ``ttl_seconds``, keyed by position list.

    Applies to the whole portfolio computation; individual lookups are
    never cached. A lookup with a different key is a miss.
    """

    def __init__(self, ttl_seconds: float = 60) -> None:
        self.ttl_seconds = ttl_seconds
        self._entry: tuple[str, float, PortfolioSnapshot] | None = None

    def get(self, key: str | None) -> PortfolioSnapshot | None:
        if self._entry is None or key is None:
            return None
        stored_key, stored_at, snapshot = self._entry
        if stored_key != key:
            return None
        if time.monotonic() - stored_at > self.ttl_seconds:
            return None
        return snapshot

    def set(self, key: str | None, snapshot: PortfolioSnapshot) -> None:
        if key is None:
            return
        self._entry = (key, time.monotonic(), snapshot)

    def clear(self) -> None:
        self._entry = None


class PortfolioService:
    """Builds snapshots with sources and timeouts taken from config.

    Usage::

        service = PortfolioService(load_config())
        snapshot = service.get_snapshot(read_position_records(path))

    Parameters:
        config: Loaded :class:`~kitty.config.schema.KittyConfig`.
        equity_source: Override for the yfinance source.
        market_source: Override for the Kalshi client. An injected source
            is not closed by the service.
    """

    def __init__(
        self,
        config: Any,
        equity_source: EquityQuoteSource | None = None,
        market_source: MarketQuoteSource | None = None,
    ) -> None:
        self.config = config
        self._equity_source = equity_source
        self._market_source = market_source
        self.cache = SnapshotCache(config.portfolio.cache_ttl_seconds)

    def _make_equity_source(self) -> EquityQuoteSource | None:
        if not self.config.data_sources.yfinance.enabled:
            return None
        if self._equity_source is not None:
            return self._equity_source
        from kitty.data.adapters.yfinance_adapter import YFinanceQuoteSource

        return YFinanceQuoteSource()

    async def build(self, positions: Iterable[Any]) -> PortfolioSnapshot:
        """Build a fresh snapshot, bypassing the cache."""
        sources = self.config.data_sources
        equity_source = self._make_equity_source()

        if not sources.kalshi.enabled:
            return await build_portfolio(
                positions, equity_source, None,
                equity_timeout=sources.yfinance.timeout_seconds,
            )

        if self._market_source is not None:
            return await build_portfolio(
                positions, equity_source, self._market_source,
                equity_timeout=sources.yfinance.timeout_seconds,
                market_timeout=sources.kalshi.timeout_seconds,
            )

        from kitty.data.adapters.kalshi_adapter import KalshiClient

        async with KalshiClient(
            base_url=sources.kalshi.base_url,
            timeout=sources.kalshi.timeout_seconds,
        ) as kalshi:
            return await build_portfolio(
                positions, equity_source, kalshi,
                equity_timeout=sources.yfinance.timeout_seconds,
                market_timeout=sources.kalshi.timeout_seconds,
            )

    def get_snapshot(self, positions: Iterable[Any], refresh: bool = False) -> PortfolioSnapshot:
        """Cached snapshot of ``positions`` if still fresh, else build one synchronously."""
        try:
            records = list(positions)
        except Exception as e:
            logger.error("Position list is unusable, not caching: %s", e)
            return asyncio.run(self.build(()))

        key = snapshot_key(records)
        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached snapshot from %s", cached.last_updated)
                return cached
        snapshot = asyncio.run(self.build(records))
        self.cache.set(key, snapshot)
        return snapshot


def build_portfolio_sync(positions: Iterable[Any], **kwargs: Any) -> PortfolioSnapshot:
    """Run :func:`build_portfolio` from synchronous code."""
    return asyncio.run(build_portfolio(positions, **kwargs))
