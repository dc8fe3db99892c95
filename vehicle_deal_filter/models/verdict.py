"""
Hot-deal verdict models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Verdict:
    """Decision that a listing is priced below its segment's market price."""

    market_price: float
    threshold: float
    hard_cap: Optional[float]
    discount_applied: float
    price: float
    sample_count: int
    group_key: str
    below_market: bool = True

    @property
    def savings_pct(self) -> float:
        """How far below the market price the listing is, as a fraction."""
        if self.market_price <= 0:
            return 0.0
        return (self.market_price - self.price) / self.market_price
