"""
Unit tests for the alert formatting system.
"""

import pytest

from vehicle_deal_filter.components.alert_formatter import AlertFormatter, format_amount
from vehicle_deal_filter.models.alert import FormattedAlert
from vehicle_deal_filter.models.verdict import Verdict


@pytest.fixture
def formatter():
    return AlertFormatter()


@pytest.fixture
def verdict():
    return Verdict(
        market_price=45_000.0,
        threshold=38_250.0,
        hard_cap=None,
        discount_applied=0.15,
        price=38_000.0,
        sample_count=20,
        group_key="volkswagen | golf | diesel | 2016–2020 | 80–150k",
    )


class TestFormatAmount:
    """Test cases for format_amount."""

    def test_thousands_separator(self):
        """Test space-separated thousands."""
        assert format_amount(45_000) == "45 000"
        assert format_amount(1_234_567.4) == "1 234 567"
        assert format_amount(999) == "999"


class TestAlertFormatter:
    """Test cases for AlertFormatter."""

    def test_plain_listing(self, formatter, sample_listing):
        """Test a new listing without a verdict."""
        alert = formatter.format_listing(sample_listing)

        assert isinstance(alert, FormattedAlert)
        assert alert.is_hot_deal is False
        assert alert.parse_mode == "HTML"
        assert alert.message.split("\n") == [
            "<b>Volkswagen Golf</b>",
            "38 000 zł • Warszawa",
            "https://www.olx.pl/d/oferta/vw-golf-CID5-IDabc.html",
        ]

    def test_hot_deal_badge(self, formatter, sample_listing, verdict):
        """Test that a verdict adds the badge line first."""
        alert = formatter.format_listing(sample_listing, verdict)
        lines = alert.message.split("\n")

        assert alert.is_hot_deal is True
        assert lines[0] == "🔥 HOT DEAL -16% vs market 45 000 (20 samples)"
        assert lines[1] == "<b>Volkswagen Golf</b>"

    def test_badge_with_cap(self, formatter, verdict):
        """Test that an applied hard cap is shown."""
        capped = Verdict(
            market_price=verdict.market_price,
            threshold=verdict.threshold,
            hard_cap=40_000.0,
            discount_applied=verdict.discount_applied,
            price=verdict.price,
            sample_count=verdict.sample_count,
            group_key=verdict.group_key,
        )
        assert formatter.create_badge(capped).endswith(", cap 40 000")

    def test_html_is_escaped(self, formatter, make_listing):
        """Test that user text cannot inject markup."""
        listing = make_listing(title="Audi <A4> & co", location="Łódź <script>")
        alert = formatter.format_listing(listing)

        assert "<b>Audi &lt;A4&gt; &amp; co</b>" in alert.message
        assert "&lt;script&gt;" in alert.message

    def test_untitled_listing(self, formatter, make_listing):
        """Test the placeholder for listings without a title."""
        alert = formatter.format_listing(make_listing(title="  "))
        assert alert.title == "Untitled listing"

    def test_missing_price_and_location(self, formatter, make_listing):
        """Test that empty details do not leave stray separators."""
        alert = formatter.format_listing(make_listing(price_text=None, location=""))
        assert " • " not in alert.message

    def test_long_title_truncated(self, formatter, make_listing):
        """Test that very long titles are shortened."""
        alert = formatter.format_listing(make_listing(title="A" * 500))
        assert len(alert.title) == 200
        assert alert.title.endswith("...")
