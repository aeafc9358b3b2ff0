"""
Unit Test Fixtures for Checkout Pricing

Engines are pure, so fixtures only pin the clock.
"""

import pytest
from datetime import datetime, timezone

from microservices.checkout_service.shipping_calculator import ShippingRateEngine
from microservices.checkout_service.tax_calculator import TaxEngine

# Wednesday
FIXED_NOW = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def shipping_engine():
    return ShippingRateEngine(clock=lambda: FIXED_NOW)


@pytest.fixture
def tax_engine():
    return TaxEngine()
