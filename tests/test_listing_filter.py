"""
Tests for the listing pre-filter.
"""

import pytest

from vehicle_deal_filter.components.listing_filter import ListingFilter
from vehicle_deal_filter.models.config import ListingFilterConfig


class TestListingFilter:
    """Test cases for ListingFilter."""

    def test_no_limits_requires_only_a_price(self, make_listing, clock):
        """Test that without limits only price-less listings are dropped."""
        listing_filter = ListingFilter(clock=clock)

        assert listing_filter.accepts(make_listing(published_at=None)) is True
        assert listing_filter.accepts(make_listing(price_text="Zamienię")) is False

    def test_price_range(self, make_listing, clock):
        """Test inclusive price bounds."""
        listing_filter = ListingFilter(ListingFilterConfig(price_min=10_000, price_max=40_000), clock=clock)

        assert listing_filter.check_price_range(make_listing(price_text="10 000 zł")) is True
        assert listing_filter.check_price_range(make_listing(price_text="40 000 zł")) is True
        assert listing_filter.check_price_range(make_listing(price_text="9 999 zł")) is False
        assert listing_filter.check_price_range(make_listing(price_text="40 001 zł")) is False

    def test_fresh_within_days(self, make_listing, clock):
        """Test the day-based freshness window."""
        listing_filter = ListingFilter(clock=clock)

        assert listing_filter.is_fresh_within_days(make_listing(published_at="2024-05-31T13:00:00Z"), 1) is True
        assert listing_filter.is_fresh_within_days(make_listing(published_at="2024-05-30T12:00:00Z"), 1) is False

    def test_fresh_within_minutes(self, make_listing, clock):
        """Test the minute-based freshness window."""
        listing_filter = ListingFilter(clock=clock)

        assert listing_filter.is_fresh_within_minutes(make_listing(published_at="2024-06-01T11:30:00Z"), 45) is True
        assert listing_filter.is_fresh_within_minutes(make_listing(published_at="2024-06-01T11:00:00Z"), 45) is False

    @pytest.mark.parametrize("published_at", [None, "", "wczoraj o 12"])
    def test_missing_or_bad_date_fails_when_limited(self, make_listing, clock, published_at):
        """Test that a freshness limit needs a parseable date."""
        listing_filter = ListingFilter(clock=clock)
        listing = make_listing(published_at=published_at)

        assert listing_filter.is_fresh_within_days(listing, 2) is False
        assert listing_filter.is_fresh_within_days(listing, 0) is True
        assert listing_filter.is_fresh_within_minutes(listing, None) is True

    def test_naive_date_is_utc(self, make_listing, clock):
        """Test that dates without an offset are read as UTC."""
        listing_filter = ListingFilter(clock=clock)
        assert listing_filter.is_fresh_within_minutes(make_listing(published_at="2024-06-01 11:50:00"), 15) is True

    def test_filter(self, make_listing, clock):
        """Test filtering a batch."""
        listing_filter = ListingFilter(
            ListingFilterConfig(price_max=50_000, fresh_days=1), clock=clock
        )
        fresh_cheap = make_listing(url="https://example.com/1")
        stale = make_listing(url="https://example.com/2", published_at="2024-05-20T10:00:00Z")
        expensive = make_listing(url="https://example.com/3", price_text="75 000 zł")

        assert listing_filter.filter([fresh_cheap, stale, expensive]) == [fresh_cheap]
