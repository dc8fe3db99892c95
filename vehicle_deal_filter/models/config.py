"""
Configuration models for the system.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..utils.error_handling import ConfigurationError

DEFAULT_SQLITE_PATH = "./data/seen_ads.sqlite"

GRANULARITY_NAMES = ("full", "no_mileage", "model_fuel", "model")

FUEL_NAMES = ("diesel", "petrol", "hybrid", "electric")


def default_sqlite_path() -> str:
    return os.getenv("SQLITE_PATH", DEFAULT_SQLITE_PATH)


@dataclass
class HotDealConfig:
    """Thresholds of the hot-deal decision rule."""

    min_samples: int = 10
    discount_standard: float = 0.15
    discount_weak: float = 0.22
    market_freshness_minutes: int = 120
    hard_cap_rules: Dict[str, float] = field(default_factory=dict)
    fallback_chain: List[str] = field(default_factory=lambda: list(GRANULARITY_NAMES))

    def validate(self) -> bool:
        """Validate hot-deal configuration."""
        if not isinstance(self.min_samples, int) or self.min_samples < 1:
            raise ConfigurationError("min_samples must be a positive integer")

        for name in ("discount_standard", "discount_weak"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not (0 <= value < 1):
                raise ConfigurationError(f"{name} must be between 0 and 1")

        if (
            not isinstance(self.market_freshness_minutes, int)
            or self.market_freshness_minutes <= 0
        ):
            raise ConfigurationError(
                "market_freshness_minutes must be a positive integer"
            )

        if not isinstance(self.hard_cap_rules, dict):
            raise ConfigurationError("hard_cap_rules must be a mapping")

        for key, cap in self.hard_cap_rules.items():
            if not isinstance(key, str) or not key.strip():
                raise ConfigurationError("hard cap rule keys must be non-empty strings")
            if key != key.lower():
                raise ConfigurationError(f"hard cap rule key must be lower-case: {key}")
            if isinstance(cap, bool) or not isinstance(cap, (int, float)) or cap <= 0:
                raise ConfigurationError(f"hard cap for '{key}' must be a positive number")

        if not self.fallback_chain:
            raise ConfigurationError("fallback_chain cannot be empty")

        for name in self.fallback_chain:
            if name not in GRANULARITY_NAMES:
                raise ConfigurationError(
                    f"fallback_chain entries must be one of: {list(GRANULARITY_NAMES)}"
                )

        return True


@dataclass
class SamplingConfig:
    """How market samples are collected from a scrape batch."""

    min_group_size: int = 5
    max_samples_per_group: int = 200
    refresh_from_batch: bool = True

    def validate(self) -> bool:
        """Validate sampling configuration."""
        if not isinstance(self.min_group_size, int) or self.min_group_size < 1:
            raise ConfigurationError("min_group_size must be a positive integer")

        if (
            not isinstance(self.max_samples_per_group, int)
            or self.max_samples_per_group < self.min_group_size
        ):
            raise ConfigurationError(
                "max_samples_per_group must be an integer >= min_group_size"
            )

        return True


@dataclass
class ListingFilterConfig:
    """Pre-filter applied to scraped listings."""

    price_min: Optional[float] = None
    price_max: Optional[float] = None
    fresh_days: Optional[int] = None
    fresh_minutes: Optional[int] = None

    def validate(self) -> bool:
        """Validate listing filter configuration."""
        for name in ("price_min", "price_max"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, (int, float)) or value < 0):
                raise ConfigurationError(f"{name} must be a non-negative number")

        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ConfigurationError("price_min cannot exceed price_max")

        for name in ("fresh_days", "fresh_minutes"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value < 0):
                raise ConfigurationError(f"{name} must be a non-negative integer")

        return True


@dataclass
class ExtractionConfig:
    """Vocabulary added on top of the built-in extraction heuristics."""

    brand_aliases: Dict[str, str] = field(default_factory=dict)
    stop_words: List[str] = field(default_factory=list)
    fuel_keywords: Dict[str, List[str]] = field(default_factory=dict)

    def validate(self) -> bool:
        """Validate extraction vocabulary overrides."""
        for alias, brand in self.brand_aliases.items():
            if not alias or not brand:
                raise ConfigurationError("brand aliases must map non-empty strings")

        if not all(isinstance(word, str) and word for word in self.stop_words):
            raise ConfigurationError("stop words must be non-empty strings")

        for fuel, words in self.fuel_keywords.items():
            if fuel not in FUEL_NAMES:
                raise ConfigurationError(f"fuel keyword category must be one of: {list(FUEL_NAMES)}")
            if not isinstance(words, list):
                raise ConfigurationError(f"fuel keywords for '{fuel}' must be a list")

        return True


@dataclass
class StorageConfig:
    """Persistence backend selection."""

    type: str = "sqlite"
    sqlite_path: str = field(default_factory=default_sqlite_path)

    def validate(self) -> bool:
        """Validate storage configuration."""
        if self.type not in ("sqlite", "memory"):
            raise ConfigurationError("storage type must be 'sqlite' or 'memory'")

        if self.type == "sqlite" and (not self.sqlite_path or not self.sqlite_path.strip()):
            raise ConfigurationError("sqlite_path cannot be empty")

        return True


@dataclass
class SystemConfig:
    """Process-level settings."""

    log_dir: str = "logs"
    log_level: str = "INFO"

    def validate(self) -> bool:
        """Validate system settings."""
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log level: {self.log_level}")

        return True


@dataclass
class Configuration:
    """System configuration."""

    hot_deals: HotDealConfig = field(default_factory=HotDealConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    filters: ListingFilterConfig = field(default_factory=ListingFilterConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    def validate(self) -> bool:
        """Validate system configuration."""
        self.hot_deals.validate()
        self.sampling.validate()
        self.filters.validate()
        self.extraction.validate()
        self.storage.validate()
        self.system.validate()

        return True
