"""
Tests for the hot-deal evaluator.
"""

from dataclasses import replace

import pytest

from vehicle_deal_filter.components.hot_deal_evaluator import HardCapRules, HotDealEvaluator
from vehicle_deal_filter.models.config import HotDealConfig
from vehicle_deal_filter.models.listing import ExtractedAttributes


class TestHardCapRules:
    """Test cases for HardCapRules."""

    def test_lookup_order(self):
        """Test brand+model, then brand, then default."""
        rules = HardCapRules({"volkswagen golf": 40_000, "volkswagen": 50_000, "default": 90_000})

        assert rules.resolve(ExtractedAttributes(brand="volkswagen", model="golf")) == 40_000
        assert rules.resolve(ExtractedAttributes(brand="volkswagen", model="passat")) == 50_000
        assert rules.resolve(ExtractedAttributes(brand="audi", model="a4")) == 90_000

    def test_keys_are_case_insensitive(self):
        """Test that configured keys are lower-cased."""
        rules = HardCapRules({"Toyota Corolla": 30_000})
        assert rules.resolve(ExtractedAttributes(brand="toyota", model="corolla")) == 30_000

    def test_no_rule(self):
        """Test that no matching rule means no cap."""
        rules = HardCapRules({"bmw": 60_000})
        assert rules.resolve(ExtractedAttributes(brand="audi", model="a4")) is None

    def test_check_price(self):
        """Test the cap comparison."""
        rules = HardCapRules()
        assert rules.check_price(40_000, None) is True
        assert rules.check_price(40_000, 40_000) is True
        assert rules.check_price(40_001, 40_000) is False


class TestHotDealEvaluator:
    """Test cases for HotDealEvaluator."""

    @pytest.fixture
    def evaluator(self):
        return HotDealEvaluator(HotDealConfig())

    def test_standard_discount_qualifies(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test a listing below 85% of a well-sampled median."""
        row = make_stats_row(sample_count=20, price_median=45_000.0)
        verdict = evaluator.evaluate(sample_listing, golf_attributes, row)

        assert verdict is not None
        assert verdict.threshold == 38_250.0
        assert verdict.discount_applied == 0.15
        assert verdict.market_price == 45_000.0
        assert verdict.sample_count == 20
        assert verdict.group_key == row.group_key
        assert verdict.hard_cap is None
        assert verdict.below_market is True

    def test_threshold_is_inclusive(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test the exact boundary of the standard discount."""
        row = make_stats_row(sample_count=10, price_median=50_000.0)

        at_threshold = replace(golf_attributes, price_numeric=42_500.0)
        above_threshold = replace(golf_attributes, price_numeric=42_500.01)

        assert evaluator.evaluate(sample_listing, at_threshold, row) is not None
        assert evaluator.evaluate(sample_listing, above_threshold, row) is None

    def test_weak_discount_for_small_samples(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test that a thin sample requires the wider discount."""
        row = make_stats_row(sample_count=4, price_median=50_000.0)

        verdict = evaluator.evaluate(sample_listing, replace(golf_attributes, price_numeric=39_000.0), row)
        assert verdict is not None
        assert verdict.threshold == 39_000.0
        assert verdict.discount_applied == 0.22

        # Good enough for the standard tier, not for the weak one
        assert evaluator.evaluate(sample_listing, replace(golf_attributes, price_numeric=41_000.0), row) is None

    def test_standard_tier_accepts_same_price(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test that the same price qualifies once enough samples exist."""
        row = make_stats_row(sample_count=10, price_median=50_000.0)
        assert evaluator.evaluate(sample_listing, replace(golf_attributes, price_numeric=41_000.0), row) is not None

    def test_hard_cap_veto(self, sample_listing, golf_attributes, make_stats_row):
        """Test that a listing above its absolute cap is rejected."""
        evaluator = HotDealEvaluator(HotDealConfig(hard_cap_rules={"volkswagen golf": 35_000}))
        row = make_stats_row(sample_count=20, price_median=45_000.0)

        assert evaluator.evaluate(sample_listing, golf_attributes, row) is None

    def test_hard_cap_reported(self, sample_listing, golf_attributes, make_stats_row):
        """Test that a satisfied cap is reported on the verdict."""
        evaluator = HotDealEvaluator(HotDealConfig(hard_cap_rules={"default": 60_000}))
        row = make_stats_row(sample_count=20, price_median=45_000.0)

        verdict = evaluator.evaluate(sample_listing, golf_attributes, row)
        assert verdict.hard_cap == 60_000.0

    def test_no_market_data(self, evaluator, sample_listing, golf_attributes):
        """Test that there is no verdict without statistics."""
        assert evaluator.evaluate(sample_listing, golf_attributes, None) is None

    def test_no_price(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test that a listing without a numeric price is never a deal."""
        attrs = replace(golf_attributes, price_numeric=None)
        assert evaluator.evaluate(sample_listing, attrs, make_stats_row()) is None

    def test_savings_pct(self, evaluator, sample_listing, golf_attributes, make_stats_row):
        """Test the reported savings fraction."""
        row = make_stats_row(sample_count=20, price_median=40_000.0)
        verdict = evaluator.evaluate(sample_listing, replace(golf_attributes, price_numeric=30_000.0), row)
        assert verdict.savings_pct == pytest.approx(0.25)

    def test_discount_for(self, evaluator, make_stats_row):
        """Test tier selection by sample count."""
        assert evaluator.discount_for(make_stats_row(sample_count=9)) == 0.22
        assert evaluator.discount_for(make_stats_row(sample_count=10)) == 0.15
