"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Vehicle Deal Filter test suite.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from vehicle_deal_filter.models.config import Configuration, HotDealConfig, SamplingConfig
from vehicle_deal_filter.models.listing import ExtractedAttributes, FuelType, Listing
from vehicle_deal_filter.models.market import MarketStatsRow
from vehicle_deal_filter.services.storage import InMemoryStore
from vehicle_deal_filter.utils import logging as logging_utils
from vehicle_deal_filter.utils.logging import ROOT_LOGGER_NAME, LoggingManager

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

GOLF_KEY = "volkswagen | golf | diesel | 2016–2020 | 80–150k"


@pytest.fixture
def now():
    """A fixed point in time used as 'now' by injected clocks."""
    return FIXED_NOW


@pytest.fixture
def clock(now):
    """Clock callable returning the fixed time."""
    return lambda: now


@pytest.fixture
def make_listing():
    """Factory for listings with sensible defaults."""

    def _make(
        title="Volkswagen Golf",
        price_text="38 000 zł",
        description="2.0 TDI, 2017, 120 000 km",
        url="https://www.olx.pl/d/oferta/vw-golf-CID5-IDabc.html",
        published_at="2024-06-01T10:00:00+00:00",
        location="Warszawa",
        subtitle=None,
    ):
        return Listing(
            title=title,
            price_text=price_text,
            location=location,
            published_at=published_at,
            url=url,
            subtitle=subtitle,
            description=description,
        )

    return _make


@pytest.fixture
def sample_listing(make_listing):
    """A diesel Golf listing priced at 38 000."""
    return make_listing()


@pytest.fixture
def golf_attributes():
    """Attributes matching the sample listing."""
    return ExtractedAttributes(
        brand="volkswagen",
        model="golf",
        fuel=FuelType.DIESEL,
        year=2017,
        mileage_km=120_000,
        price_numeric=38_000.0,
    )


@pytest.fixture
def make_stats_row(now):
    """Factory for market statistics rows."""

    def _make(
        group_key=GOLF_KEY,
        sample_count=20,
        price_median=45_000.0,
        price_p25=None,
        price_p75=None,
        updated_at=None,
    ):
        parts = group_key.split(" | ") + [""] * 5
        return MarketStatsRow(
            group_key=group_key,
            brand=parts[0],
            model=parts[1],
            fuel=parts[2],
            year_bin=parts[3],
            mileage_bin=parts[4],
            sample_count=sample_count,
            price_median=price_median,
            price_p25=price_p25 if price_p25 is not None else price_median * 0.9,
            price_p75=price_p75 if price_p75 is not None else price_median * 1.1,
            updated_at=updated_at if updated_at is not None else now - timedelta(minutes=5),
        )

    return _make


@pytest.fixture
def memory_store():
    """An initialized in-memory store."""
    store = InMemoryStore()
    store.init()
    yield store
    store.close()


@pytest.fixture
def sample_configuration():
    """Configuration with batch sampling disabled and the in-memory store."""
    config = Configuration(
        hot_deals=HotDealConfig(),
        sampling=SamplingConfig(refresh_from_batch=False),
    )
    config.storage.type = "memory"
    return config


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so tests stay isolated."""
    yield
    logging_utils._logging_manager = None
    names = [ROOT_LOGGER_NAME] + [
        f"{ROOT_LOGGER_NAME}.{component}" for component in LoggingManager.COMPONENTS
    ]
    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
