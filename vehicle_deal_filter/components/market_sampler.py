"""
Market sampling from scrape batches.

A scrape batch usually contains several listings of the same segment. This
module pools their prices under every key of the fallback chain and
replaces the cached statistics of each group that has enough samples.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.listing import Listing
from ..models.market import GroupKey, MarketStatsRow
from ..utils.logging import get_logger
from .attribute_extractor import AttributeExtractor
from .group_key import GroupKeyResolver
from .market_stats import MarketStatisticsCache

logger = get_logger("market.sampler")


class MarketSampler:
    """Refreshes market statistics from freshly collected listing prices."""

    def __init__(
        self,
        cache: MarketStatisticsCache,
        extractor: Optional[AttributeExtractor] = None,
        resolver: Optional[GroupKeyResolver] = None,
        min_group_size: int = 5,
        max_samples_per_group: int = 200,
    ):
        """
        Initialize market sampler.

        Args:
            cache: Market statistics cache to refresh
            extractor: Attribute extractor for prices and group keys
            resolver: Fallback chain whose keys are sampled
            min_group_size: Minimum number of prices before a group is priced
            max_samples_per_group: Cap on prices kept per group (first come)
        """
        self.cache = cache
        self.extractor = extractor or AttributeExtractor()
        self.resolver = resolver or GroupKeyResolver()
        self.min_group_size = min_group_size
        self.max_samples_per_group = max_samples_per_group

    def collect_samples(self, listings: Iterable[Listing]) -> Dict[str, Tuple[GroupKey, List[float]]]:
        """
        Group listing prices by every candidate key of the fallback chain.

        Returns:
            Mapping of key string to (GroupKey, prices), in first-seen order
        """
        groups: Dict[str, Tuple[GroupKey, List[float]]] = OrderedDict()

        for listing in listings:
            attrs = self.extractor.extract(listing)
            if attrs.price_numeric is None:
                continue

            for _, key in self.resolver.candidates(attrs):
                _, prices = groups.setdefault(key.key, (key, []))
                if len(prices) < self.max_samples_per_group:
                    prices.append(attrs.price_numeric)

        return groups

    def refresh_from_batch(self, listings: Iterable[Listing], only_stale: bool = True) -> List[MarketStatsRow]:
        """
        Replace cached statistics for every sufficiently large group in the batch.

        Args:
            listings: Listings from one scrape pass
            only_stale: Leave groups whose cached row is still fresh untouched

        Returns:
            The rows that were written
        """
        refreshed: List[MarketStatsRow] = []

        for key_text, (key, prices) in self.collect_samples(listings).items():
            if len(prices) < self.min_group_size:
                continue

            if only_stale and self.cache.is_fresh(key).fresh:
                logger.debug("Skipping fresh group", extra={"group_key": key_text})
                continue

            row = self.cache.refresh(key, prices)
            if row is not None:
                refreshed.append(row)

        logger.info(
            "Market refresh from batch complete",
            extra={"groups_refreshed": len(refreshed)},
        )
        return refreshed
