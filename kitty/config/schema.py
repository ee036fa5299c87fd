"""Pydantic models for config.yaml validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from kitty.config.defaults import (
    KALSHI_DEFAULTS,
    PAYOUT_SPLIT,
    PORTFOLIO_DEFAULTS,
    YFINANCE_DEFAULTS,
)


# ---------------------------------------------------------------------------
# Data Source Configs
# ---------------------------------------------------------------------------

class YFinanceConfig(BaseModel):
    enabled: bool = True
    timeout_seconds: float = Field(YFINANCE_DEFAULTS["timeout_seconds"], gt=0)


class KalshiConfig(BaseModel):
    enabled: bool = True
    base_url: str = KALSHI_DEFAULTS["base_url"]
    timeout_seconds: float = Field(KALSHI_DEFAULTS["timeout_seconds"], gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DataSourcesConfig(BaseModel):
    yfinance: YFinanceConfig = Field(default_factory=YFinanceConfig)
    kalshi: KalshiConfig = Field(default_factory=KalshiConfig)


# ---------------------------------------------------------------------------
# Portfolio Config
# ---------------------------------------------------------------------------

class PortfolioConfig(BaseModel):
    positions_file: str = PORTFOLIO_DEFAULTS["positions_file"]
    cache_ttl_seconds: int = Field(PORTFOLIO_DEFAULTS["cache_ttl_seconds"], ge=0)
    original_total: float = Field(PORTFOLIO_DEFAULTS["original_total"], ge=0)
    payout_split: list[float] = Field(default_factory=lambda: list(PAYOUT_SPLIT))

    @model_validator(mode="after")
    def payout_split_sums_to_1(self) -> "PortfolioConfig":
        if not self.payout_split:
            raise ValueError("payout_split must not be empty")
        if any(share < 0 for share in self.payout_split):
            raise ValueError("payout_split shares must be non-negative")
        total = sum(self.payout_split)
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"payout_split must sum to 1.0, got {total:.4f}")
        return self


# ---------------------------------------------------------------------------
# Top-Level Config
# ---------------------------------------------------------------------------

class KittyConfig(BaseModel):
    """Root configuration model for the Kitty application."""

    version: int = 1
    data_sources: DataSourcesConfig = Field(default_factory=DataSourcesConfig)
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)

    @model_validator(mode="before")
    @classmethod
    def coerce_none_to_defaults(cls, data: Any) -> Any:
        """YAML parses empty keys as None. Drop them so defaults apply."""
        if isinstance(data, dict):
            for key in ("data_sources", "portfolio"):
                if key in data and data[key] is None:
                    del data[key]
        return data
