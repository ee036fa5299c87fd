"""Position records, market quotes, and valuation results.

Positions are a tagged union over ``type``::

    cash          -- face-value holdings, price is always 1
    stock         -- fractional equity holdings priced by ticker
    event-market  -- binary outcome contracts bought on the yes or no side

Input records may use either snake_case or the camelCase field names of
the shared positions file (``positionName``, ``purchasePrice``, ...).
The legacy ``kalshi`` tag is accepted and normalized to ``event-market``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


# ---------------------------------------------------------------------------
# Market quotes
# ---------------------------------------------------------------------------

class MarketQuote(BaseModel):
    """Event-market quote. Prices are in minor units (cents).

    Only ``last_price`` feeds valuation math; the rest is passed through
    for display. ``is_fallback`` marks synthesized quotes that are not
    real market data.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    ticker: str
    event_ticker: str = ""
    market_type: str = "binary"
    title: str = ""
    subtitle: str = ""
    status: str
    last_price: float
    previous_price: float = 0
    yes_bid: float = 0
    yes_ask: float = 0
    no_bid: float = 0
    no_ask: float = 0
    volume: float = 0
    volume_24h: float = 0
    liquidity: float = 0
    open_interest: float = 0
    close_time: str = ""
    result: str = ""
    tick_size: float = 1
    is_fallback: bool = False

    @property
    def yes_price(self) -> float:
        """Last traded yes price as a unit fraction."""
        return self.last_price / 100


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------

class _BasePosition(BaseModel):
    model_config = _MODEL_CONFIG

    id: int
    position_name: str
    person_name: str | None = None
    error: str | None = None


class CashPosition(_BasePosition):
    type: Literal["cash"]
    amount: float = Field(ge=0)


class StockPosition(_BasePosition):
    type: Literal["stock"]
    ticker: str
    purchase_price: float = Field(ge=0)
    amount: float = Field(ge=0)
    link: str | None = None
    extra_cash: float = 0.0


class EventMarketPosition(_BasePosition):
    type: Literal["event-market", "kalshi"]
    ticker: str
    purchase_price: float = Field(ge=0)
    contracts: int = Field(ge=0)
    side: Literal["yes", "no"]
    fees: float = 0.0
    extra_cash: float = 0.0
    link: str | None = None
    market_data: MarketQuote | None = None

    @field_validator("type")
    @classmethod
    def normalize_legacy_tag(cls, v: str) -> str:
        return LEGACY_TYPE_ALIASES.get(v, v)

    @field_validator("fees", "extra_cash", mode="before")
    @classmethod
    def none_as_zero(cls, v: Any) -> Any:
        return 0.0 if v is None else v


Position = Annotated[
    Union[CashPosition, StockPosition, EventMarketPosition],
    Field(discriminator="type"),
]

POSITION_TYPES = ("cash", "stock", "event-market")
LEGACY_TYPE_ALIASES = {"kalshi": "event-market"}


# ---------------------------------------------------------------------------
# Valuation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValuedPosition:
    """A position with its computed market value.

    Degraded entries (valuation failed) have the same shape, a flat 0%
    return, and ``error`` set to the failure reason. Only the degraded
    path sets ``error``; a record's own ``error`` note stays on
    ``position``.
    """
    id: int
    type: str
    position_name: str
    current_price: float
    current_value: float
    original_value: float
    total_return: float
    person_name: str | None = None
    fees: float | None = None
    """Event-market only: trading fees included in the cost basis."""
    net_return: float | None = None
    """Event-market only: price-move return excluding fees and extra cash."""
    market_data: MarketQuote | None = None
    error: str | None = None
    position: Any = field(default=None, compare=False)
    """The source record: a Position model, or the raw mapping if it could not be parsed."""

    @property
    def is_degraded(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view, keyed the way the positions file is."""
        if isinstance(self.position, BaseModel):
            data = self.position.model_dump(by_alias=True, exclude_none=True)
        elif isinstance(self.position, dict):
            data = dict(self.position)
        else:
            data = {}
        data.update({
            "id": self.id,
            "type": self.type,
            "positionName": self.position_name,
            "currentPrice": self.current_price,
            "currentValue": self.current_value,
            "originalValue": self.original_value,
            "totalReturn": self.total_return,
        })
        if self.person_name is not None:
            data["personName"] = self.person_name
        if self.fees is not None:
            data["fees"] = self.fees
        if self.net_return is not None:
            data["netReturn"] = self.net_return
        if self.market_data is not None:
            data["marketData"] = self.market_data.model_dump()
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Point-in-time valuation of every position, in input order."""
    positions: tuple[ValuedPosition, ...] = ()
    last_updated: str = ""
    """ISO-8601 UTC timestamp captured when the last valuation finished."""

    @property
    def n_positions(self) -> int:
        return len(self.positions)

    @property
    def total_value(self) -> float:
        return sum(p.current_value for p in self.positions)

    @property
    def degraded(self) -> list[ValuedPosition]:
        return [p for p in self.positions if p.is_degraded]

    def get_position(self, position_id: int) -> ValuedPosition | None:
        for p in self.positions:
            if p.id == position_id:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "positions": [p.to_dict() for p in self.positions],
            "lastUpdated": self.last_updated,
        }
