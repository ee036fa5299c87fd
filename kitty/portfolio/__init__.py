"""Portfolio valuation: position models, per-position formulas, summaries.

Public API::

    from kitty.portfolio import (
        Position,
        MarketQuote,
        ValuedPosition,
        PortfolioSnapshot,
        value_position,
        degraded_valuation,
        summarize_portfolio,
    )

The concurrent builder lives in :mod:`kitty.portfolio.aggregator`.
"""

from kitty.portfolio.models import (
    CashPosition,
    EventMarketPosition,
    MarketQuote,
    PortfolioSnapshot,
    Position,
    StockPosition,
    ValuedPosition,
)
from kitty.portfolio.summary import PortfolioSummary, summarize_portfolio
from kitty.portfolio.valuation import (
    UnknownPositionTypeError,
    degraded_valuation,
    value_position,
)

__all__ = [
    "CashPosition",
    "EventMarketPosition",
    "MarketQuote",
    "PortfolioSnapshot",
    "Position",
    "StockPosition",
    "ValuedPosition",
    "PortfolioSummary",
    "summarize_portfolio",
    "UnknownPositionTypeError",
    "degraded_valuation",
    "value_position",
]
