"""Kitty -- live valuation for a shared, mixed-asset portfolio."""

__version__ = "0.1.0"
