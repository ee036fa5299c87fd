"""Per-position valuation.

Pure arithmetic: every lookup happens before these functions are called.
Each position type has its own formula:

  cash          price 1, no return
  stock         (price x amount) against (purchase price x amount)
  event-market  (price x contracts + extra cash) against
                (purchase price x contracts + fees + extra cash),
                where a "no" position is priced at 1 - yes price

Returns are percentages and are 0 whenever the cost basis is 0.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from kitty.portfolio.models import (
    LEGACY_TYPE_ALIASES,
    CashPosition,
    EventMarketPosition,
    MarketQuote,
    StockPosition,
    ValuedPosition,
)


class UnknownPositionTypeError(ValueError):
    """A position record carries a type tag this engine cannot value."""


def pct_return(current: float, original: float) -> float:
    """Percentage change from ``original`` to ``current``; 0 when original <= 0."""
    if original > 0:
        return (current - original) / original * 100
    return 0.0


def side_price(quote: MarketQuote, side: str) -> float:
    """Unit price of one contract on ``side``.

    Markets quote the yes side only; the no side is its complement.
    """
    yes_price = quote.yes_price
    if side == "yes":
        return yes_price
    if side == "no":
        return 1 - yes_price
    raise ValueError(f"Unknown market side: {side!r}")


# ---------------------------------------------------------------------------
# Per-type formulas
# ---------------------------------------------------------------------------

def value_cash(position: CashPosition) -> ValuedPosition:
    return ValuedPosition(
        id=position.id,
        type=position.type,
        position_name=position.position_name,
        person_name=position.person_name,
        current_price=1.0,
        current_value=position.amount,
        original_value=position.amount,
        total_return=0.0,
        position=position,
    )


def value_stock(position: StockPosition, current_price: float | None = None) -> ValuedPosition:
    """Value a stock at ``current_price`` (purchase price if not resolved)."""
    if current_price is None:
        current_price = position.purchase_price
    original_value = position.amount * position.purchase_price
    current_value = current_price * position.amount
    return ValuedPosition(
        id=position.id,
        type=position.type,
        position_name=position.position_name,
        person_name=position.person_name,
        current_price=current_price,
        current_value=current_value,
        original_value=original_value,
        total_return=pct_return(current_value, original_value),
        position=position,
    )


def value_event_market(position: EventMarketPosition, quote: MarketQuote) -> ValuedPosition:
    """Value an event-market position against ``quote``.

    Fees and leftover trade cash are sunk into the cost basis, so
    ``total_return`` includes them. ``net_return`` compares the contract
    price alone against the purchase price.
    """
    current_price = side_price(quote, position.side)
    original_value = position.purchase_price * position.contracts + position.fees + position.extra_cash
    current_value = current_price * position.contracts + position.extra_cash
    if position.purchase_price > 0:
        net_return = (current_price - position.purchase_price) / position.purchase_price * 100
    else:
        net_return = 0.0
    return ValuedPosition(
        id=position.id,
        type=position.type,
        position_name=position.position_name,
        person_name=position.person_name,
        current_price=current_price,
        current_value=current_value,
        original_value=original_value,
        total_return=pct_return(current_value, original_value),
        fees=position.fees,
        net_return=net_return,
        market_data=quote,
        position=position,
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def value_position(position: Any, price_or_quote: float | MarketQuote | None = None) -> ValuedPosition:
    """Value one position with an already-resolved price or quote.

    Parameters
    ----------
    position : Position
        A cash, stock, or event-market position.
    price_or_quote : float | MarketQuote | None
        Unit price for stocks, market quote for event markets, ignored for
        cash. Stocks default to their purchase price. Event markets default
        to their cached ``market_data``, then to the fallback quote.

    Raises
    ------
    UnknownPositionTypeError
        If ``position`` is not one of the known position types.
    """
    if isinstance(position, CashPosition):
        return value_cash(position)
    if isinstance(position, StockPosition):
        if isinstance(price_or_quote, MarketQuote):
            raise TypeError("stock positions are priced with a number, not a market quote")
        return value_stock(position, price_or_quote)
    if isinstance(position, EventMarketPosition):
        quote = price_or_quote if isinstance(price_or_quote, MarketQuote) else None
        if quote is None:
            quote = position.market_data
        if quote is None:
            from kitty.data.resolvers import fallback_quote

            quote = fallback_quote(position)
        return value_event_market(position, quote)

    tag = position.get("type") if isinstance(position, Mapping) else getattr(position, "type", None)
    raise UnknownPositionTypeError(f"Unknown position type: {tag!r}")


# ---------------------------------------------------------------------------
# Degraded valuation
# ---------------------------------------------------------------------------

def _num(record: Mapping[str, Any], *keys: str) -> float:
    """First numeric value found under ``keys``, else 0.0."""
    for key in keys:
        val = record.get(key)
        if isinstance(val, bool):
            continue
        try:
            return float(val)
        except (TypeError, ValueError):
            continue
    return 0.0


def degraded_valuation(position: Any, reason: str) -> ValuedPosition:
    """Flat valuation built only from the record's own fields.

    Used when a position cannot be valued normally. The position is priced
    at its purchase price (1 for cash), so the return is 0 and
    ``error`` carries ``reason``. Accepts parsed positions and raw
    mappings alike.
    """
    if isinstance(position, CashPosition):
        return replace(value_cash(position), error=reason)

    if isinstance(position, (StockPosition, EventMarketPosition)):
        record = position.model_dump()
    elif isinstance(position, Mapping):
        record = position
    else:
        record = {}

    tag = record.get("type")
    if isinstance(tag, str):
        tag = LEGACY_TYPE_ALIASES.get(tag, tag)
    raw_id = record.get("id")
    position_id = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else -1
    name = record.get("position_name", record.get("positionName"))
    person = record.get("person_name", record.get("personName"))

    if tag == "cash":
        price = 1.0
        amount = _num(record, "amount")
        original_value = current_value = amount
        fees = net_return = None
    else:
        price = _num(record, "purchase_price", "purchasePrice")
        fees = net_return = None
        if tag == "event-market" or "contracts" in record:
            contracts = _num(record, "contracts")
            extra_cash = _num(record, "extra_cash", "extraCash")
            original_value = price * contracts + _num(record, "fees") + extra_cash
            current_value = price * contracts + extra_cash
            fees = net_return = 0.0
        else:
            amount = _num(record, "amount")
            original_value = current_value = price * amount

    return ValuedPosition(
        id=position_id,
        type=str(tag) if tag is not None else "unknown",
        position_name=str(name) if name is not None else "",
        person_name=str(person) if person is not None else None,
        current_price=price,
        current_value=current_value,
        original_value=original_value,
        total_return=0.0,
        fees=fees,
        net_return=net_return,
        error=reason,
        position=position,
    )
