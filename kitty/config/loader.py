"""Configuration loading with YAML parsing and environment variable expansion.

Relative ``portfolio.positions_file`` values are anchored to the directory
of the config file that set them, so ``kitty --config ~/pot/kitty.yaml``
finds ``~/pot/positions.yaml`` from any working directory.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from kitty.config.schema import KittyConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = [
    Path("kitty.yaml"),
    Path("~/.kitty/config.yaml").expanduser(),
]

# ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in config strings.

    Unset variables without a default expand to the empty string.
    """
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), value)
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Return the config file to load, or None to run on defaults."""
    if explicit_path is not None:
        path = Path(explicit_path).expanduser()
        if path.is_file():
            return path
        logger.warning("Config file not found: %s", path)
        return None

    for candidate in DEFAULT_CONFIG_PATHS:
        resolved = candidate.expanduser()
        if resolved.is_file():
            logger.info("Using config: %s", resolved)
            return resolved

    return None


def _anchor_positions_file(raw: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    portfolio = raw.get("portfolio")
    if not isinstance(portfolio, dict):
        return raw
    positions_file = portfolio.get("positions_file")
    if not isinstance(positions_file, str) or not positions_file:
        return raw
    anchored = str(resolve_path(positions_file, base_dir))
    return {**raw, "portfolio": {**portfolio, "positions_file": anchored}}


def load_config(path: str | Path | None = None) -> KittyConfig:
    """Load and validate configuration.

    Resolution order:
    1. Explicit path argument (``--config`` / ``KITTY_CONFIG``)
    2. kitty.yaml in current directory
    3. ~/.kitty/config.yaml
    4. All defaults (no file needed)

    Raises:
        ValueError: if the file is not a YAML mapping.
        pydantic.ValidationError: if a value fails the schema.
    """
    config_path = _find_config_file(path)
    if config_path is None:
        logger.info("No config file found, using defaults")
        return KittyConfig()

    logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    raw = _anchor_positions_file(_expand_env_vars(raw), config_path.parent)
    return KittyConfig.model_validate(raw)


def resolve_path(path_str: str | Path, base_dir: str | Path | None = None) -> Path:
    """Absolute path for ``path_str``; relative paths join ``base_dir`` (CWD if None)."""
    path = Path(path_str).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir).expanduser() / path
    return path.resolve()
