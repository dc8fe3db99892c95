"""
Tests for market sampling from scrape batches.
"""

from datetime import timedelta

import pytest

from vehicle_deal_filter.components.attribute_extractor import AttributeExtractor
from vehicle_deal_filter.components.group_key import GroupKeyResolver
from vehicle_deal_filter.components.market_sampler import MarketSampler
from vehicle_deal_filter.components.market_stats import MarketStatisticsCache

FULL_KEY = "volkswagen | golf | diesel | 2016–2020 | 80–150k"


@pytest.fixture
def cache(memory_store, clock):
    return MarketStatisticsCache(memory_store, freshness_minutes=120, clock=clock)


@pytest.fixture
def sampler(cache):
    return MarketSampler(
        cache,
        AttributeExtractor(),
        GroupKeyResolver.from_names(["full", "model"]),
        min_group_size=3,
        max_samples_per_group=10,
    )


@pytest.fixture
def golf_batch(make_listing):
    prices = ["40 000 zł", "42 000 zł", "44 000 zł", "46 000 zł"]
    return [
        make_listing(url=f"https://example.com/golf/{i}", price_text=price)
        for i, price in enumerate(prices)
    ]


class TestMarketSampler:
    """Test cases for MarketSampler."""

    def test_collect_samples_per_chain_key(self, sampler, golf_batch):
        """Test that prices are pooled under every key of the chain."""
        groups = sampler.collect_samples(golf_batch)

        assert list(groups) == [FULL_KEY, "volkswagen | golf"]
        key, prices = groups[FULL_KEY]
        assert key.brand == "volkswagen"
        assert prices == [40_000.0, 42_000.0, 44_000.0, 46_000.0]

    def test_listings_without_price_are_skipped(self, sampler, make_listing):
        """Test that unpriced listings are not samples."""
        groups = sampler.collect_samples([make_listing(price_text="do negocjacji")])
        assert groups == {}

    def test_sample_cap(self, cache, make_listing):
        """Test that a group keeps at most max_samples_per_group prices."""
        sampler = MarketSampler(cache, min_group_size=1, max_samples_per_group=2)
        listings = [make_listing(url=f"https://example.com/{i}") for i in range(5)]

        _, prices = sampler.collect_samples(listings)[FULL_KEY]
        assert len(prices) == 2

    def test_refresh_from_batch(self, sampler, cache, golf_batch, now):
        """Test that large enough groups get new statistics."""
        rows = sampler.refresh_from_batch(golf_batch)

        assert [row.group_key for row in rows] == [FULL_KEY, "volkswagen | golf"]
        stored = cache.get(FULL_KEY)
        assert stored.sample_count == 4
        assert stored.price_median == 43_000.0
        assert stored.updated_at == now

    def test_small_groups_not_refreshed(self, sampler, cache, golf_batch):
        """Test that groups below min_group_size are left alone."""
        assert sampler.refresh_from_batch(golf_batch[:2]) == []
        assert cache.get(FULL_KEY) is None

    def test_fresh_groups_skipped(self, sampler, cache, golf_batch, make_stats_row, now):
        """Test that fresh statistics are not replaced by default."""
        cache.upsert(make_stats_row(group_key=FULL_KEY, updated_at=now - timedelta(minutes=10)))

        rows = sampler.refresh_from_batch(golf_batch)

        assert [row.group_key for row in rows] == ["volkswagen | golf"]
        assert cache.get(FULL_KEY).price_median == 45_000.0

    def test_force_refresh(self, sampler, cache, golf_batch, make_stats_row, now):
        """Test replacing fresh statistics when only_stale is off."""
        cache.upsert(make_stats_row(group_key=FULL_KEY, updated_at=now - timedelta(minutes=10)))

        sampler.refresh_from_batch(golf_batch, only_stale=False)

        assert cache.get(FULL_KEY).price_median == 43_000.0
