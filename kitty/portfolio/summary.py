"""Portfolio-level totals derived from a snapshot.

The pot is pooled: everyone bought in for the same amount, so the overall
return is measured against the fixed pooled contribution rather than the
sum of per-position cost bases. The final pot is split between the top
finishers according to ``payout_split``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from kitty.config.defaults import PAYOUT_SPLIT, PORTFOLIO_DEFAULTS, UNASSIGNED_PERSON
from kitty.portfolio.models import PortfolioSnapshot
from kitty.portfolio.valuation import pct_return


@dataclass
class PortfolioSummary:
    """Aggregate view of a snapshot."""

    total_value: float = 0.0
    original_total: float = 0.0
    total_return: float = 0.0
    by_person: dict[str, float] = field(default_factory=dict)
    """person → summed current value of their positions."""
    by_type: dict[str, float] = field(default_factory=dict)
    """position type → summed current value."""
    payouts: list[float] = field(default_factory=list)
    """Dollar payout for 1st, 2nd, 3rd, ... place."""
    degraded_count: int = 0
    last_updated: str = ""

    @property
    def is_positive(self) -> bool:
        return self.total_return > 0

    def person_return(self, person: str, buy_in: float) -> float:
        """Return on one member's buy-in."""
        return pct_return(self.by_person.get(person, 0.0), buy_in)


def summarize_portfolio(
    snapshot: PortfolioSnapshot,
    original_total: float = PORTFOLIO_DEFAULTS["original_total"],
    payout_split: list[float] | None = None,
) -> PortfolioSummary:
    """Compute totals, per-person values, and the payout split."""
    split = PAYOUT_SPLIT if payout_split is None else payout_split

    by_person: dict[str, float] = {}
    by_type: dict[str, float] = {}
    for p in snapshot.positions:
        person = p.person_name or UNASSIGNED_PERSON
        by_person[person] = by_person.get(person, 0.0) + p.current_value
        by_type[p.type] = by_type.get(p.type, 0.0) + p.current_value

    total = snapshot.total_value
    return PortfolioSummary(
        total_value=total,
        original_total=original_total,
        total_return=pct_return(total, original_total),
        by_person=by_person,
        by_type=by_type,
        payouts=[total * share for share in split],
        degraded_count=len(snapshot.degraded),
        last_updated=snapshot.last_updated,
    )
