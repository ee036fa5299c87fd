"""Default values for data sources and portfolio settings.

The payout split and pooled contribution match the current competition
rules. Change them in config.yaml rather than here.
"""

# ---------------------------------------------------------------------------
# Data Sources
# ---------------------------------------------------------------------------
YFINANCE_DEFAULTS = {
    "timeout_seconds": 10.0,
}

KALSHI_DEFAULTS = {
    "base_url": "https://api.elections.kalshi.com/trade-api/v2",
    "timeout_seconds": 10.0,
}

# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------
PORTFOLIO_DEFAULTS = {
    "positions_file": "positions.yaml",
    "cache_ttl_seconds": 60,
    "original_total": 420.0,  # 12 members x $35 buy-in
}

# 1st / 2nd / 3rd place share of the final pot (must sum to 1.0)
PAYOUT_SPLIT = [0.625, 0.25, 0.125]

UNASSIGNED_PERSON = "Unassigned"
