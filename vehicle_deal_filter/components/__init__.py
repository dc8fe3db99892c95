"""
Core components for the Vehicle Deal Filter system.

This module contains the engine's building blocks: fingerprinting,
attribute extraction, group keys, market statistics, hot-deal evaluation,
deduplication and alert formatting.
"""

from .alert_formatter import AlertFormatter
from .attribute_extractor import AttributeExtractor, ExtractionVocabulary
from .dedup_ledger import DedupLedger
from .fingerprint import fingerprint, normalize_url
from .group_key import GroupKeyResolver, KeyGranularity, build_group_key
from .hot_deal_evaluator import HardCapRules, HotDealEvaluator
from .listing_filter import ListingFilter
from .market_sampler import MarketSampler
from .market_stats import MarketStatisticsCache, Resolution, compute_stats

__all__ = [
    "fingerprint",
    "normalize_url",
    "AttributeExtractor",
    "ExtractionVocabulary",
    "build_group_key",
    "GroupKeyResolver",
    "KeyGranularity",
    "MarketStatisticsCache",
    "Resolution",
    "compute_stats",
    "HotDealEvaluator",
    "HardCapRules",
    "DedupLedger",
    "ListingFilter",
    "MarketSampler",
    "AlertFormatter",
]
