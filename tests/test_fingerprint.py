"""
Tests for listing fingerprinting.
"""

import pytest

from vehicle_deal_filter.components.fingerprint import fingerprint, normalize_url


class TestNormalizeUrl:
    """Test cases for normalize_url."""

    def test_drops_query_and_fragment(self):
        """Test that tracking parameters and anchors are removed."""
        url = "https://www.olx.pl/d/oferta/golf-ID1.html?reason=hp&search_reason=x#gallery"
        assert normalize_url(url) == "https://www.olx.pl/d/oferta/golf-ID1.html"

    def test_query_order_does_not_matter(self):
        """Test that reordered query parameters give the same result."""
        a = normalize_url("https://example.com/ad/1?a=1&b=2")
        b = normalize_url("https://example.com/ad/1?b=2&a=1")
        assert a == b

    def test_scheme_and_host_are_lower_cased(self):
        """Test case normalisation of scheme and host."""
        assert normalize_url("HTTPS://WWW.Example.COM/Ad/1") == "https://www.example.com/Ad/1"

    def test_default_port_is_dropped(self):
        """Test that default ports are not part of the identity."""
        assert normalize_url("https://example.com:443/ad") == "https://example.com/ad"
        assert normalize_url("http://example.com:8080/ad") == "http://example.com:8080/ad"

    def test_empty_path_becomes_slash(self):
        """Test URLs without a path."""
        assert normalize_url("https://example.com?x=1") == "https://example.com/"

    def test_relative_url_fallback(self):
        """Test that non-absolute strings are truncated at ? and #."""
        assert normalize_url("/d/oferta/golf-ID1.html?x=1#top") == "/d/oferta/golf-ID1.html"

    @pytest.mark.parametrize("value", ["", None, "   "])
    def test_empty_input(self, value):
        """Test that empty input normalises to an empty string."""
        assert normalize_url(value) == ""

    def test_idempotent(self):
        """Test that normalising twice changes nothing."""
        once = normalize_url("https://Example.com/ad/7?utm=1")
        assert normalize_url(once) == once


class TestFingerprint:
    """Test cases for fingerprint."""

    def test_fingerprint_of_listing(self, make_listing):
        """Test fingerprinting a parsed listing."""
        listing = make_listing(url="https://example.com/ad/1?ref=feed")
        assert fingerprint(listing) == "https://example.com/ad/1"

    def test_same_ad_from_different_pages(self, make_listing):
        """Test that the same ad reached with different params has one fingerprint."""
        first = make_listing(url="https://example.com/ad/1?page=1#photo")
        second = make_listing(url="https://example.com/ad/1?page=3")
        assert fingerprint(first) == fingerprint(second)

    def test_fingerprint_of_record_uses_url_aliases(self):
        """Test that raw records fall back to link and detailUrl."""
        assert fingerprint({"link": "https://example.com/a?x=1"}) == "https://example.com/a"
        assert fingerprint({"url": "", "detailUrl": "https://example.com/b"}) == "https://example.com/b"

    def test_record_without_url(self):
        """Test that a record without any URL has an empty fingerprint."""
        assert fingerprint({"title": "Audi A4"}) == ""
