"""
Processing result models.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .alert import FormattedAlert
from .listing import ExtractedAttributes, Listing
from .market import GroupKey, MarketStatsRow
from .verdict import Verdict


class Outcome(Enum):
    """What happened to a listing in one pass through the engine."""

    MISSING_URL = "missing_url"
    DUPLICATE = "duplicate"
    UNGROUPED = "ungrouped"
    NO_MARKET_DATA = "no_market_data"
    NOT_A_DEAL = "not_a_deal"
    HOT_DEAL = "hot_deal"


@dataclass
class ProcessingResult:
    """Result of processing a single listing."""

    listing: Listing
    outcome: Outcome
    fingerprint: str = ""
    attributes: Optional[ExtractedAttributes] = None
    group_key: Optional[GroupKey] = None
    priced_by: Optional[str] = None
    market_row: Optional[MarketStatsRow] = None
    verdict: Optional[Verdict] = None
    alert: Optional[FormattedAlert] = None

    @property
    def is_new(self) -> bool:
        """True when the listing was surfaced for the first time."""
        return self.outcome in (Outcome.UNGROUPED, Outcome.NOT_A_DEAL, Outcome.HOT_DEAL)


@dataclass
class BatchReport:
    """Summary of one scrape batch."""

    received: int
    filtered_out: int
    refreshed_groups: List[str] = field(default_factory=list)
    results: List[ProcessingResult] = field(default_factory=list)

    @property
    def hot_deals(self) -> List[ProcessingResult]:
        return [r for r in self.results if r.outcome == Outcome.HOT_DEAL]

    @property
    def new_listings(self) -> List[ProcessingResult]:
        return [r for r in self.results if r.is_new]

    @property
    def needs_sampling(self) -> List[str]:
        """Group keys that had no fresh market data, in first-seen order."""
        keys: List[str] = []
        for result in self.results:
            if result.outcome == Outcome.NO_MARKET_DATA and result.group_key is not None:
                if result.group_key.key not in keys:
                    keys.append(result.group_key.key)
        return keys

    def outcome_counts(self) -> Dict[str, int]:
        counts = Counter(result.outcome.value for result in self.results)
        return {outcome.value: counts.get(outcome.value, 0) for outcome in Outcome}
