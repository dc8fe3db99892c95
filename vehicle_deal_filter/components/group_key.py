"""Group key construction and the fallback resolution chain."""

from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from ..models.listing import ExtractedAttributes, FuelType
from ..models.market import GroupKey

# (upper bound inclusive, label); values above the last bound get the final label
YEAR_BINS: Tuple[Tuple[int, str], ...] = (
    (2005, "≤2005"),
    (2010, "2006–2010"),
    (2015, "2011–2015"),
    (2020, "2016–2020"),
)
YEAR_BIN_TOP = "≥2021"

MILEAGE_BINS: Tuple[Tuple[int, str], ...] = (
    (80_000, "≤80k"),
    (150_000, "80–150k"),
    (220_000, "150–220k"),
    (300_000, "220–300k"),
)
MILEAGE_BIN_TOP = "≥300k"


def _bin(value: Optional[int], bins, top: str) -> str:
    if value is None:
        return ""
    for upper, label in bins:
        if value <= upper:
            return label
    return top


def year_bin(year: Optional[int]) -> str:
    """Coarse manufacture-year bucket label; empty for unknown years."""
    return _bin(year, YEAR_BINS, YEAR_BIN_TOP)


def mileage_bin(mileage_km: Optional[int]) -> str:
    """Coarse mileage bucket label; empty for unknown mileage."""
    return _bin(mileage_km, MILEAGE_BINS, MILEAGE_BIN_TOP)


def build_group_key(attrs: ExtractedAttributes) -> Optional[GroupKey]:
    """
    Combine extracted attributes into the segment's group key.

    Returns None when there is no brand to group on. An unknown fuel type
    contributes an empty component, like a missing year or mileage.
    """
    if not attrs.brand:
        return None

    return GroupKey(
        brand=attrs.brand,
        model=attrs.model,
        fuel="" if attrs.fuel == FuelType.UNKNOWN else attrs.fuel.value,
        year_bin=year_bin(attrs.year),
        mileage_bin=mileage_bin(attrs.mileage_km),
    )


class KeyGranularity(Enum):
    """How much of the full group key a fallback candidate keeps."""

    FULL = "full"
    NO_MILEAGE = "no_mileage"
    MODEL_FUEL = "model_fuel"
    MODEL = "model"

    def narrow(self, key: GroupKey) -> GroupKey:
        """Project a full key down to this granularity."""
        if self is KeyGranularity.FULL:
            return key
        if self is KeyGranularity.NO_MILEAGE:
            return GroupKey(key.brand, key.model, key.fuel, key.year_bin)
        if self is KeyGranularity.MODEL_FUEL:
            return GroupKey(key.brand, key.model, key.fuel)
        return GroupKey(key.brand, key.model)


DEFAULT_CHAIN: Tuple[KeyGranularity, ...] = tuple(KeyGranularity)


class GroupKeyResolver:
    """Produces the ordered fallback keys under which a listing may be priced."""

    def __init__(self, chain: Optional[Sequence[KeyGranularity]] = None):
        self.chain: List[KeyGranularity] = list(chain or DEFAULT_CHAIN)

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "GroupKeyResolver":
        return cls([KeyGranularity(name) for name in names])

    def candidates(self, attrs: ExtractedAttributes) -> Iterator[Tuple[KeyGranularity, GroupKey]]:
        """
        Yield (granularity, key) pairs, most specific first.

        Candidates that collapse onto an already-yielded key are skipped.
        """
        full_key = build_group_key(attrs)
        if full_key is None:
            return

        seen = set()
        for granularity in self.chain:
            key = granularity.narrow(full_key)
            if key.key in seen:
                continue
            seen.add(key.key)
            yield granularity, key
