"""External market data adapters."""

from kitty.data.adapters.kalshi_adapter import KalshiClient, MarketDataError
from kitty.data.adapters.yfinance_adapter import YFinanceQuoteSource

__all__ = ["KalshiClient", "MarketDataError", "YFinanceQuoteSource"]
