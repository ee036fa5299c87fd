"""Read the shared position list from a YAML or JSON file.

The file holds either a top-level list of position records or a mapping
with a ``positions`` key. JSON is read by the YAML parser, so both formats
go through the same path. Example::

    positions:
      - id: 0
        type: cash
        positionName: Cash
        personName: Danny
        amount: 35
      - id: 4
        type: event-market
        positionName: Carpenter >= 2 weeks at #1
        ticker: KXCARPENTERWEEKSNUM1-26JAN01-2
        purchasePrice: 0.31
        contracts: 106
        side: "yes"
        fees: 1.63
        extraCash: 0.02

Note ``side: "yes"`` is quoted: bare ``yes`` is a YAML boolean. Both
readers undo that conversion anyway.

:func:`read_position_records` feeds the CLI and leaves record validation
to the aggregator. :func:`load_positions` validates every record up front
and is used by ``kitty config validate``.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter

from kitty.portfolio.models import Position

logger = logging.getLogger(__name__)

_POSITIONS_ADAPTER: TypeAdapter[list[Any]] = TypeAdapter(list[Position])


def _normalize_side(record: Any) -> Any:
    """Undo YAML 1.1 boolean parsing of ``side: yes`` / ``side: no``."""
    if isinstance(record, dict) and isinstance(record.get("side"), bool):
        return {**record, "side": "yes" if record["side"] else "no"}
    return record


def _extract_records(raw: Any) -> list[Any]:
    """Pull the record list out of a parsed document."""
    if isinstance(raw, dict):
        raw = raw.get("positions")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("Positions file must contain a list of positions")
    return [_normalize_side(r) for r in raw]


def _duplicate_ids(records: list[Any]) -> list[Any]:
    seen: set[Any] = set()
    dupes: set[Any] = set()
    for r in records:
        pid = r.get("id") if isinstance(r, dict) else getattr(r, "id", None)
        if pid is None or not isinstance(pid, Hashable):
            continue
        if pid in seen:
            dupes.add(pid)
        seen.add(pid)
    return sorted(dupes, key=repr)


def parse_positions(raw: Any) -> list[Any]:
    """Validate raw position records.

    Raises:
        ValueError: if the document shape is wrong or ids repeat.
        pydantic.ValidationError: if any record fails validation.
    """
    positions = _POSITIONS_ADAPTER.validate_python(_extract_records(raw))
    dupes = _duplicate_ids(positions)
    if dupes:
        raise ValueError(f"Duplicate position ids: {dupes}")
    return positions


def _read_document(path: str | Path) -> Any:
    path = Path(path).expanduser()
    logger.info("Loading positions from %s", path)
    with open(path) as f:
        return yaml.safe_load(f)


def read_position_records(path: str | Path) -> list[Any]:
    """Read the positions file without validating individual records.

    Records go to the aggregator as-is, so a bad record degrades only its
    own entry. Repeated ids are logged, not rejected.

    Raises:
        ValueError: if the document is not a list of records.
    """
    records = _extract_records(_read_document(path))
    dupes = _duplicate_ids(records)
    if dupes:
        logger.warning("Duplicate position ids in %s: %s", path, dupes)
    logger.debug("Read %d position records", len(records))
    return records


def load_positions(path: str | Path) -> list[Any]:
    """Read and strictly validate the positions file at ``path``."""
    positions = parse_positions(_read_document(path))
    logger.debug("Loaded %d positions", len(positions))
    return positions
