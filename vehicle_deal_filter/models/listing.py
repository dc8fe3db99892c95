"""
Listing data models for the Vehicle Deal Filter system.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ..utils.error_handling import ValidationError

MIN_YEAR = 1980

URL_FIELDS = ("url", "link", "detailUrl")
TITLE_FIELDS = ("title", "name")
PRICE_FIELDS = ("price", "priceText", "price_text")
LOCATION_FIELDS = ("location", "city", "region", "area")
LOCATION_PARTS = ("city", "region", "district", "name")
PUBLISHED_FIELDS = (
    "publishedAt",
    "published_at",
    "createdAt",
    "created_at",
    "date",
    "time",
    "postedAt",
    "posted_at",
)


def first_present(record: Mapping[str, Any], keys) -> Any:
    """Return the first truthy value among ``keys`` in ``record``."""
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


def location_text(value: Any) -> str:
    """Flatten a provider location (string or mapping) into display text."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        parts = [str(value[part]) for part in LOCATION_PARTS if value.get(part)]
        return ", ".join(parts)
    return str(value)


class FuelType(Enum):
    """Fuel categories recognised by the attribute extractor."""

    DIESEL = "diesel"
    PETROL = "petrol"
    HYBRID = "hybrid"
    ELECTRIC = "electric"
    UNKNOWN = "unknown"


@dataclass
class Listing:
    """A single scraped classified ad, as handed over by the scraper."""

    title: str
    price_text: Union[str, float, int, None]
    location: str
    published_at: Optional[str]
    url: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Listing":
        """Build a listing from a loosely shaped provider record."""
        loc = first_present(record, LOCATION_FIELDS)
        published = first_present(record, PUBLISHED_FIELDS)
        return cls(
            title=str(first_present(record, TITLE_FIELDS) or ""),
            price_text=first_present(record, PRICE_FIELDS),
            location=location_text(loc),
            published_at=str(published) if published is not None else None,
            url=str(first_present(record, URL_FIELDS) or ""),
            subtitle=record.get("subtitle"),
            description=record.get("description"),
            raw=dict(record),
        )

    @property
    def full_text(self) -> str:
        """Title, subtitle and description joined for free-text extraction."""
        return " ".join(
            part for part in (self.title, self.subtitle, self.description) if part
        )


@dataclass(frozen=True)
class ExtractedAttributes:
    """Structured attributes parsed from a listing's free text."""

    brand: str
    model: str
    fuel: FuelType = FuelType.UNKNOWN
    year: Optional[int] = None
    mileage_km: Optional[int] = None
    price_numeric: Optional[float] = None

    def validate(self, current_year: Optional[int] = None) -> bool:
        """Validate the attribute invariants."""
        if not isinstance(self.fuel, FuelType):
            raise ValidationError("fuel must be a FuelType enum")

        if self.year is not None:
            max_year = (current_year or datetime.now().year) + 1
            if not (MIN_YEAR <= self.year <= max_year):
                raise ValidationError(
                    f"Year must be between {MIN_YEAR} and {max_year}"
                )

        if self.mileage_km is not None and self.mileage_km < 0:
            raise ValidationError("Mileage cannot be negative")

        if self.price_numeric is not None and self.price_numeric < 0:
            raise ValidationError("Price cannot be negative")

        return True
