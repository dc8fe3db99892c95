"""
Tests for the dedup ledger.
"""

import pytest

from vehicle_deal_filter.components.dedup_ledger import DedupLedger
from vehicle_deal_filter.models.seen import SeenReason
from vehicle_deal_filter.utils.error_handling import ValidationError

FP = "https://example.com/ad/1"


class TestDedupLedger:
    """Test cases for DedupLedger."""

    @pytest.fixture
    def ledger(self, memory_store, clock):
        return DedupLedger(memory_store, clock=clock)

    def test_unseen_fingerprint(self, ledger):
        """Test that a new ledger has seen nothing."""
        assert ledger.has_seen(FP) is False
        assert ledger.count() == 0

    def test_mark_seen(self, ledger, now):
        """Test recording a fingerprint with its metadata."""
        assert ledger.mark_seen(FP, url=FP, title="Audi A4", price=35_000.0, reason=SeenReason.TOP) is True

        assert ledger.has_seen(FP) is True
        record = ledger.get(FP)
        assert record.title == "Audi A4"
        assert record.price_numeric == 35_000.0
        assert record.reason == SeenReason.TOP
        assert record.created_at == now

    def test_first_insert_wins(self, ledger):
        """Test that a second mark neither fails nor overwrites."""
        ledger.mark_seen(FP, title="first", reason=SeenReason.SCRAPE)
        assert ledger.mark_seen(FP, title="second", reason=SeenReason.TOP) is False

        record = ledger.get(FP)
        assert record.title == "first"
        assert record.reason == SeenReason.SCRAPE
        assert ledger.count() == 1

    def test_empty_values_stored_as_none(self, ledger):
        """Test that blank metadata is normalised to None."""
        ledger.mark_seen(FP, url="", title="", published_at="")
        record = ledger.get(FP)

        assert record.url is None
        assert record.title is None
        assert record.published_at is None
        assert record.reason is None

    def test_empty_fingerprint_rejected(self, ledger):
        """Test that an empty fingerprint cannot be recorded."""
        with pytest.raises(ValidationError):
            ledger.mark_seen("")

    def test_count_distinct(self, ledger):
        """Test the distinct fingerprint count."""
        for i in range(3):
            ledger.mark_seen(f"https://example.com/ad/{i}")
        ledger.mark_seen("https://example.com/ad/0")

        assert ledger.count() == 3
