"""
Listing processing service for the Vehicle Deal Filter system.

This module wires the engine's components into the per-listing data flow:
fingerprint and dedup check, attribute extraction, group key resolution,
market statistics lookup, hot-deal evaluation and ledger update.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from ..components.alert_formatter import AlertFormatter
from ..components.attribute_extractor import AttributeExtractor, ExtractionVocabulary
from ..components.dedup_ledger import DedupLedger
from ..components.fingerprint import fingerprint
from ..components.group_key import GroupKeyResolver, build_group_key
from ..components.hot_deal_evaluator import HotDealEvaluator
from ..components.listing_filter import ListingFilter
from ..components.market_sampler import MarketSampler
from ..components.market_stats import MarketStatisticsCache
from ..interfaces import IAlertFormatter, IHotDealEvaluator, IStore
from ..models.config import Configuration
from ..models.listing import Listing
from ..models.processing import BatchReport, Outcome, ProcessingResult
from ..models.seen import SeenReason
from ..utils.logging import get_logger


class ListingProcessor:
    """
    Runs listings through the hot-deal pipeline.

    Listings without fresh market data are left out of the dedup ledger so a
    later pass, after sampling, can still evaluate them.
    """

    def __init__(
        self,
        config: Configuration,
        store: IStore,
        clock: Optional[Callable[[], datetime]] = None,
        evaluator: Optional[IHotDealEvaluator] = None,
        formatter: Optional[IAlertFormatter] = None,
    ):
        """
        Initialize the listing processor.

        Args:
            config: System configuration
            store: Initialized persistence backend
            clock: Callable returning the current time
            evaluator: Decision rule, defaults to HotDealEvaluator
            formatter: Alert formatter, defaults to AlertFormatter
        """
        self.config = config
        self.logger = get_logger("listing.processor")

        vocabulary = ExtractionVocabulary.default().extended(config.extraction)
        self.extractor = AttributeExtractor(vocabulary, clock=clock)
        self.resolver = GroupKeyResolver.from_names(config.hot_deals.fallback_chain)
        self.cache = MarketStatisticsCache(
            store, config.hot_deals.market_freshness_minutes, clock=clock
        )
        self.evaluator: IHotDealEvaluator = evaluator or HotDealEvaluator(config.hot_deals)
        self.ledger = DedupLedger(store, clock=clock)
        self.listing_filter = ListingFilter(config.filters, self.extractor, clock=clock)
        self.sampler = MarketSampler(
            self.cache,
            self.extractor,
            self.resolver,
            min_group_size=config.sampling.min_group_size,
            max_samples_per_group=config.sampling.max_samples_per_group,
        )
        self.formatter: IAlertFormatter = formatter or AlertFormatter()

    def process(self, listing: Listing) -> ProcessingResult:
        """
        Process a single listing.

        Args:
            listing: Listing to process

        Returns:
            ProcessingResult describing the outcome
        """
        fp = fingerprint(listing)
        if not fp:
            self.logger.warning("Listing has no URL", extra={"title": listing.title})
            return ProcessingResult(listing=listing, outcome=Outcome.MISSING_URL)

        if self.ledger.has_seen(fp):
            self.logger.debug("Duplicate listing skipped", extra={"fingerprint": fp})
            return ProcessingResult(listing=listing, outcome=Outcome.DUPLICATE, fingerprint=fp)

        attrs = self.extractor.extract(listing)
        group_key = build_group_key(attrs)
        result = ProcessingResult(
            listing=listing,
            outcome=Outcome.UNGROUPED,
            fingerprint=fp,
            attributes=attrs,
            group_key=group_key,
        )

        if group_key is None:
            self._mark(result, SeenReason.SCRAPE)
            return result

        resolution = self.cache.resolve(attrs, self.resolver)
        if resolution is None:
            result.outcome = Outcome.NO_MARKET_DATA
            self.logger.info(
                "No fresh market data for listing",
                extra={"fingerprint": fp, "group_key": group_key.key},
            )
            return result

        result.priced_by = resolution.granularity.value
        result.market_row = resolution.row
        result.verdict = self.evaluator.evaluate(listing, attrs, resolution.row)

        if result.verdict is not None:
            result.outcome = Outcome.HOT_DEAL
            self._mark(result, SeenReason.TOP)
        else:
            result.outcome = Outcome.NOT_A_DEAL
            self._mark(result, SeenReason.SCRAPE)

        return result

    def _mark(self, result: ProcessingResult, reason: SeenReason) -> None:
        listing = result.listing
        price = result.attributes.price_numeric if result.attributes else None
        self.ledger.mark_seen(
            result.fingerprint,
            url=listing.url,
            title=listing.title,
            price=price,
            published_at=listing.published_at,
            reason=reason,
        )
        result.alert = self.formatter.format_listing(listing, result.verdict)

    def process_batch(
        self, records: Iterable[Union[Listing, Mapping[str, Any]]]
    ) -> BatchReport:
        """
        Process one scrape batch.

        Every priced listing in the batch contributes to market sampling;
        only listings passing the listing filter are evaluated.

        Args:
            records: Listings or raw provider records

        Returns:
            BatchReport for the batch
        """
        listings: List[Listing] = [
            record if isinstance(record, Listing) else Listing.from_record(record)
            for record in records
        ]
        kept = self.listing_filter.filter(listings)

        refreshed = []
        if self.config.sampling.refresh_from_batch:
            refreshed = self.sampler.refresh_from_batch(listings)

        report = BatchReport(
            received=len(listings),
            filtered_out=len(listings) - len(kept),
            refreshed_groups=[row.group_key for row in refreshed],
            results=[self.process(listing) for listing in kept],
        )

        self.logger.info(
            "Batch processed",
            extra={
                "received": report.received,
                "filtered_out": report.filtered_out,
                "refreshed_groups": len(report.refreshed_groups),
                "outcomes": report.outcome_counts(),
                "seen_total": self.ledger.count(),
            },
        )
        return report
