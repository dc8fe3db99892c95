"""Listing pre-filter applying freshness and price-range limits."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from dateutil import parser as date_parser

from ..models.config import ListingFilterConfig
from ..models.listing import Listing
from .attribute_extractor import AttributeExtractor

logger = logging.getLogger(__name__)


class ListingFilter:
    """Drops stale listings and listings outside the configured price range."""

    def __init__(
        self,
        config: Optional[ListingFilterConfig] = None,
        extractor: Optional[AttributeExtractor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize listing filter.

        Args:
            config: Price and freshness limits; None or 0 disables a limit
            extractor: Used to parse numeric prices
            clock: Callable returning the current time
        """
        self.config = config or ListingFilterConfig()
        self.extractor = extractor or AttributeExtractor()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _published_at(self, listing: Listing) -> Optional[datetime]:
        if not listing.published_at:
            return None
        try:
            published = date_parser.parse(listing.published_at)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Unparsable publish date '{listing.published_at}': {e}")
            return None

        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        return published

    def _is_within(self, listing: Listing, limit: timedelta) -> bool:
        published = self._published_at(listing)
        if published is None:
            return False  # A freshness limit needs an explicit date

        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now - published <= limit

    def is_fresh_within_days(self, listing: Listing, days: Optional[int]) -> bool:
        """Check the listing was published within ``days`` days."""
        if not days or days <= 0:
            return True  # No freshness limit
        return self._is_within(listing, timedelta(days=days))

    def is_fresh_within_minutes(self, listing: Listing, minutes: Optional[int]) -> bool:
        """Check the listing was published within ``minutes`` minutes."""
        if not minutes or minutes <= 0:
            return True  # No freshness limit
        return self._is_within(listing, timedelta(minutes=minutes))

    def check_price_range(self, listing: Listing) -> bool:
        """Check the listing has a numeric price inside the configured range."""
        price = self.extractor.extract_price(listing.price_text)
        if price is None:
            return False

        if self.config.price_min is not None and price < self.config.price_min:
            return False

        if self.config.price_max is not None and price > self.config.price_max:
            return False

        return True

    def accepts(self, listing: Listing) -> bool:
        return (
            self.is_fresh_within_minutes(listing, self.config.fresh_minutes)
            and self.is_fresh_within_days(listing, self.config.fresh_days)
            and self.check_price_range(listing)
        )

    def filter(self, listings: Iterable[Listing]) -> List[Listing]:
        """Return the listings that pass every configured limit."""
        listings = list(listings)
        kept = [listing for listing in listings if self.accepts(listing)]
        logger.info(f"Listing filter kept {len(kept)} of {len(listings)} listings")
        return kept
