"""Configuration loading, validation, and defaults."""

from kitty.config.loader import load_config
from kitty.config.schema import KittyConfig

__all__ = ["load_config", "KittyConfig"]
