"""
Data models for the Vehicle Deal Filter system.

This module contains all data classes and type definitions used throughout
the engine for representing listings, market statistics and verdicts.
"""

from .alert import FormattedAlert
from .config import (
    Configuration,
    ExtractionConfig,
    HotDealConfig,
    ListingFilterConfig,
    SamplingConfig,
    StorageConfig,
    SystemConfig,
)
from .listing import ExtractedAttributes, FuelType, Listing
from .market import FreshnessResult, GroupKey, MarketStatsRow, PriceStats
from .processing import BatchReport, Outcome, ProcessingResult
from .seen import SeenReason, SeenRecord
from .verdict import Verdict

__all__ = [
    "Listing",
    "ExtractedAttributes",
    "FuelType",
    "GroupKey",
    "PriceStats",
    "MarketStatsRow",
    "FreshnessResult",
    "SeenReason",
    "SeenRecord",
    "Verdict",
    "Outcome",
    "ProcessingResult",
    "BatchReport",
    "FormattedAlert",
    "Configuration",
    "HotDealConfig",
    "SamplingConfig",
    "ListingFilterConfig",
    "ExtractionConfig",
    "StorageConfig",
    "SystemConfig",
]
