"""
Market statistics cache for the Vehicle Deal Filter system.

This module computes robust price summaries (median and quartiles) for a
vehicle segment and keeps them in the injected store, keyed by group key,
with a freshness predicate exposed to callers. The cache is purely
reactive: it never refreshes rows by itself.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence

from dateutil import parser as date_parser

from ..interfaces import IMarketStatsStore
from ..models.listing import ExtractedAttributes
from ..models.market import FreshnessResult, GroupKey, MarketStatsRow, PriceStats
from ..utils.error_handling import ValidationError
from ..utils.logging import get_logger
from .group_key import GroupKeyResolver, KeyGranularity

DEFAULT_FRESHNESS_MINUTES = 120

logger = get_logger("market.stats")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Percentile by linear interpolation between order statistics.

    For ``n`` sorted values the position is ``(n - 1) * p``; a fractional
    position interpolates between its floor and ceiling neighbours.
    """
    if not sorted_values:
        raise ValueError("percentile of an empty sequence")

    idx = (len(sorted_values) - 1) * p
    lower = math.floor(idx)
    upper = math.ceil(idx)
    if lower == upper:
        return float(sorted_values[int(idx)])

    fraction = idx - lower
    return sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * fraction


def compute_stats(prices: Iterable[Optional[float]]) -> Optional[PriceStats]:
    """
    Summarise a price sample.

    Non-finite and missing values are ignored. Returns None when nothing
    usable remains.
    """
    values = sorted(
        float(price)
        for price in prices
        if isinstance(price, (int, float))
        and not isinstance(price, bool)
        and math.isfinite(price)
    )
    if not values:
        return None

    return PriceStats(
        sample_count=len(values),
        price_median=percentile(values, 0.5),
        price_p25=percentile(values, 0.25),
        price_p75=percentile(values, 0.75),
    )


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a stored timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, OverflowError, TypeError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Resolution:
    """The fallback candidate that supplied usable market statistics."""

    granularity: KeyGranularity
    group_key: GroupKey
    row: MarketStatsRow
    age_minutes: float


class MarketStatisticsCache:
    """Per-segment price statistics with a freshness TTL."""

    def __init__(
        self,
        store: IMarketStatsStore,
        freshness_minutes: int = DEFAULT_FRESHNESS_MINUTES,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize market statistics cache.

        Args:
            store: Persistence backend for market statistics rows
            freshness_minutes: Default maximum age of a usable row
            clock: Callable returning the current time
        """
        self.store = store
        self.freshness_minutes = freshness_minutes
        self.clock = clock or utc_now

    def compute_stats(self, prices: Iterable[Optional[float]]) -> Optional[PriceStats]:
        """Summarise a price sample (see module-level ``compute_stats``)."""
        return compute_stats(prices)

    def get(self, group_key) -> Optional[MarketStatsRow]:
        """Return the cached row for ``group_key`` (a GroupKey or its string)."""
        return self.store.get_market_stats(str(group_key))

    def is_fresh(self, group_key, max_age_minutes: Optional[int] = None) -> FreshnessResult:
        """
        Check whether the cached row for ``group_key`` is younger than the TTL.

        Rows with an unparsable ``updated_at`` are never fresh.
        """
        max_age = self.freshness_minutes if max_age_minutes is None else max_age_minutes
        row = self.get(group_key)
        if row is None:
            return FreshnessResult(fresh=False, row=None, age_minutes=None)

        updated_at = parse_timestamp(row.updated_at)
        if updated_at is None:
            logger.warning(
                "Unparsable market stats timestamp",
                extra={"group_key": row.group_key, "updated_at": str(row.updated_at)},
            )
            return FreshnessResult(fresh=False, row=row, age_minutes=None)

        now = parse_timestamp(self.clock())
        age_minutes = (now - updated_at).total_seconds() / 60.0
        return FreshnessResult(fresh=age_minutes <= max_age, row=row, age_minutes=age_minutes)

    def upsert(self, row: MarketStatsRow) -> None:
        """
        Store ``row``, replacing any previous row for its group key entirely.

        Raises:
            ValidationError: If the group key is empty or the row is inconsistent
        """
        if row is None or not row.group_key or not str(row.group_key).strip():
            raise ValidationError("Market stats row requires a non-empty group_key")

        row.validate()
        self.store.upsert_market_stats(row)
        logger.info(
            "Market stats upserted",
            extra={
                "group_key": row.group_key,
                "sample_count": row.sample_count,
                "price_median": row.price_median,
            },
        )

    def refresh(self, group_key: GroupKey, prices: Iterable[Optional[float]]) -> Optional[MarketStatsRow]:
        """
        Recompute statistics for ``group_key`` from a fresh sample and store them.

        The previous row is discarded, never blended with the new sample.
        Returns the new row, or None when the sample had no usable prices.
        """
        stats = compute_stats(prices)
        if stats is None:
            logger.debug("No usable prices for refresh", extra={"group_key": group_key.key})
            return None

        row = MarketStatsRow.from_stats(group_key, stats, self.clock())
        self.upsert(row)
        return row

    def resolve(
        self,
        attrs: ExtractedAttributes,
        resolver: GroupKeyResolver,
        max_age_minutes: Optional[int] = None,
    ) -> Optional[Resolution]:
        """Walk the fallback chain and return the first candidate with fresh statistics."""
        for granularity, key in resolver.candidates(attrs):
            freshness = self.is_fresh(key, max_age_minutes)
            if freshness.fresh:
                return Resolution(
                    granularity=granularity,
                    group_key=key,
                    row=freshness.row,
                    age_minutes=freshness.age_minutes,
                )
        return None
