"""Hot-deal evaluation: relative discount against the market median plus absolute caps."""

import logging
from typing import Dict, Optional

from ..interfaces import IHotDealEvaluator
from ..models.config import HotDealConfig
from ..models.listing import ExtractedAttributes, Listing
from ..models.market import MarketStatsRow
from ..models.verdict import Verdict

logger = logging.getLogger(__name__)

DEFAULT_RULE = "default"


class HardCapRules:
    """Absolute price ceilings looked up by "brand model", then "brand", then default."""

    def __init__(self, rules: Optional[Dict[str, float]] = None):
        """Initialize hard cap rules from a mapping of lower-cased keys to ceilings."""
        self.rules = {key.strip().lower(): float(cap) for key, cap in (rules or {}).items()}

    def resolve(self, attrs: ExtractedAttributes) -> Optional[float]:
        """Return the ceiling that applies to the listing, if any."""
        brand = (attrs.brand or "").lower()
        brand_model = f"{brand} {(attrs.model or '').lower()}".strip()

        for key in (brand_model, brand, DEFAULT_RULE):
            if key and key in self.rules:
                return self.rules[key]
        return None

    def check_price(self, price: float, cap: Optional[float]) -> bool:
        """Check if price is within the hard cap."""
        if cap is None:
            return True  # No cap configured for this segment
        return price <= cap


class HotDealEvaluator(IHotDealEvaluator):
    """Decides whether a listing is priced below its segment's market price."""

    def __init__(self, config: Optional[HotDealConfig] = None):
        """Initialize evaluator with hot-deal thresholds."""
        self.config = config or HotDealConfig()
        self.hard_caps = HardCapRules(self.config.hard_cap_rules)

        logger.info(
            f"HotDealEvaluator initialized with min_samples={self.config.min_samples}, "
            f"discount_standard={self.config.discount_standard}, "
            f"discount_weak={self.config.discount_weak}"
        )

    def discount_for(self, stats_row: MarketStatsRow) -> float:
        """Small samples give noisy medians, so they require a wider discount."""
        if stats_row.sample_count < self.config.min_samples:
            return self.config.discount_weak
        return self.config.discount_standard

    def evaluate(
        self,
        listing: Listing,
        attrs: ExtractedAttributes,
        stats_row: Optional[MarketStatsRow],
    ) -> Optional[Verdict]:
        """
        Apply the two-tier hot-deal rule.

        A listing qualifies when its price is at or below
        ``median * (1 - discount)`` and does not exceed the hard cap for its
        segment. Missing market data or a missing price yields no verdict.

        Args:
            listing: Listing being evaluated
            attrs: Attributes extracted from the listing
            stats_row: Cached market statistics for the listing's group

        Returns:
            Verdict for a hot deal, otherwise None
        """
        if stats_row is None:
            logger.debug(f"No market data for listing {listing.url}")
            return None

        price = attrs.price_numeric
        if price is None:
            logger.debug(f"No numeric price for listing {listing.url}")
            return None

        discount = self.discount_for(stats_row)
        threshold = stats_row.price_median * (1 - discount)
        if price > threshold:
            logger.debug(
                f"Listing {listing.url} above threshold "
                f"(price: {price}, threshold: {threshold}, discount: {discount})"
            )
            return None

        hard_cap = self.hard_caps.resolve(attrs)
        if not self.hard_caps.check_price(price, hard_cap):
            logger.info(
                f"Listing {listing.url} vetoed by hard cap (price: {price}, cap: {hard_cap})"
            )
            return None

        verdict = Verdict(
            market_price=stats_row.price_median,
            threshold=threshold,
            hard_cap=hard_cap,
            discount_applied=discount,
            price=price,
            sample_count=stats_row.sample_count,
            group_key=stats_row.group_key,
        )
        logger.info(
            f"Hot deal for {stats_row.group_key}: price {price} <= threshold {threshold:.2f} "
            f"(median {stats_row.price_median}, samples {stats_row.sample_count})"
        )
        return verdict
