"""
Protocol interfaces for the Vehicle Deal Filter system.

This module defines the protocol interfaces that establish the engine's
boundaries with its persistence collaborator and enable dependency
injection throughout the application.
"""

from typing import Optional, Protocol

from .models.alert import FormattedAlert
from .models.listing import ExtractedAttributes, Listing
from .models.market import MarketStatsRow
from .models.seen import SeenRecord
from .models.verdict import Verdict


class IMarketStatsStore(Protocol):
    """Key-value storage of market statistics rows keyed by group key."""

    def get_market_stats(self, group_key: str) -> Optional[MarketStatsRow]:
        """Return the stored row for ``group_key``, if any."""
        ...

    def upsert_market_stats(self, row: MarketStatsRow) -> None:
        """Replace the stored row for ``row.group_key`` entirely."""
        ...


class ISeenStore(Protocol):
    """Unique insert-or-ignore storage of seen records keyed by fingerprint."""

    def has_seen(self, fingerprint: str) -> bool:
        """Return True when ``fingerprint`` is already recorded."""
        ...

    def insert_seen(self, record: SeenRecord) -> bool:
        """Insert ``record`` unless its fingerprint exists; return True if inserted."""
        ...

    def get_seen(self, fingerprint: str) -> Optional[SeenRecord]:
        """Return the stored record for ``fingerprint``, if any."""
        ...

    def count_seen(self) -> int:
        """Return the number of distinct fingerprints recorded."""
        ...


class IStore(IMarketStatsStore, ISeenStore, Protocol):
    """A persistence backend with an explicit lifecycle."""

    def init(self) -> None:
        """Open connections and create the schema."""
        ...

    def close(self) -> None:
        """Release all resources."""
        ...


class IAttributeExtractor(Protocol):
    """Protocol for free-text attribute extraction."""

    def extract(self, listing: Listing) -> ExtractedAttributes:
        """Parse structured attributes out of a listing."""
        ...


class IHotDealEvaluator(Protocol):
    """Protocol for the below-market decision rule."""

    def evaluate(
        self,
        listing: Listing,
        attrs: ExtractedAttributes,
        stats_row: Optional[MarketStatsRow],
    ) -> Optional[Verdict]:
        """Return a verdict when the listing is a hot deal, else None."""
        ...


class IAlertFormatter(Protocol):
    """Protocol for formatting listing notifications."""

    def format_listing(
        self, listing: Listing, verdict: Optional[Verdict] = None
    ) -> FormattedAlert:
        """Format a listing, optionally with a hot-deal badge."""
        ...
