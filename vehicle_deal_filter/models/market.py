"""
Market statistics models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..utils.error_handling import ValidationError

GROUP_KEY_SEPARATOR = " | "


@dataclass(frozen=True)
class GroupKey:
    """Composite label identifying a comparable vehicle segment."""

    brand: str
    model: str = ""
    fuel: str = ""
    year_bin: str = ""
    mileage_bin: str = ""

    @property
    def parts(self):
        return (self.brand, self.model, self.fuel, self.year_bin, self.mileage_bin)

    @property
    def key(self) -> str:
        return GROUP_KEY_SEPARATOR.join(part for part in self.parts if part)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class PriceStats:
    """Robust summary of a price sample."""

    sample_count: int
    price_median: float
    price_p25: Optional[float]
    price_p75: Optional[float]


@dataclass
class MarketStatsRow:
    """Cached price distribution for one group key."""

    group_key: str
    brand: str
    model: str
    fuel: str
    year_bin: str
    mileage_bin: str
    sample_count: int
    price_median: float
    price_p25: Optional[float]
    price_p75: Optional[float]
    updated_at: Union[datetime, str]

    @classmethod
    def from_stats(
        cls, group_key: GroupKey, stats: PriceStats, updated_at: datetime
    ) -> "MarketStatsRow":
        """Create a row for ``group_key`` from freshly computed statistics."""
        return cls(
            group_key=group_key.key,
            brand=group_key.brand,
            model=group_key.model,
            fuel=group_key.fuel,
            year_bin=group_key.year_bin,
            mileage_bin=group_key.mileage_bin,
            sample_count=stats.sample_count,
            price_median=stats.price_median,
            price_p25=stats.price_p25,
            price_p75=stats.price_p75,
            updated_at=updated_at,
        )

    def validate(self) -> bool:
        """Validate market statistics row."""
        if not self.group_key or not str(self.group_key).strip():
            raise ValidationError("group_key cannot be empty")

        if not isinstance(self.sample_count, int) or self.sample_count < 1:
            raise ValidationError("sample_count must be a positive integer")

        if self.price_p25 is not None and self.price_p25 > self.price_median:
            raise ValidationError("price_p25 cannot exceed price_median")

        if self.price_p75 is not None and self.price_median > self.price_p75:
            raise ValidationError("price_median cannot exceed price_p75")

        return True


@dataclass(frozen=True)
class FreshnessResult:
    """Answer of the freshness predicate for one group key."""

    fresh: bool
    row: Optional[MarketStatsRow]
    age_minutes: Optional[float]
