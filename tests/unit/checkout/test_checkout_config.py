"""
Unit Tests for Checkout Configuration
"""

import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from core.config import CheckoutConfig, CommerceConfig, ServiceConfig
from microservices.checkout_service.checkout_service import CheckoutService

pytestmark = [pytest.mark.unit]


class TestCheckoutConfigFromEnv:

    def test_defaults(self, monkeypatch):
        for name in (
            "CHECKOUT_NEXUS_STATES",
            "CHECKOUT_HANDLING_FEE",
            "CHECKOUT_FREE_SHIPPING_ENABLED",
            "CHECKOUT_SESSION_TTL_MINUTES",
            "CHECKOUT_RECHECK_STOCK_ON_COMPLETE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = CheckoutConfig.from_env()

        assert config.nexus_states == ()
        assert config.handling_fee == Decimal("0")
        assert config.free_shipping_enabled is True
        assert config.session_ttl_minutes == 60
        assert config.recheck_stock_on_complete is True

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("CHECKOUT_NEXUS_STATES", "ca, ny,,tx")
        monkeypatch.setenv("CHECKOUT_HANDLING_FEE", "2.50")
        monkeypatch.setenv("CHECKOUT_FREE_SHIPPING_ENABLED", "false")
        monkeypatch.setenv("CHECKOUT_SESSION_TTL_MINUTES", "30")
        monkeypatch.setenv("CHECKOUT_RECHECK_STOCK_ON_COMPLETE", "false")

        config = CheckoutConfig.from_env()

        assert config.nexus_states == ("CA", "NY", "TX")
        assert config.handling_fee == Decimal("2.50")
        assert config.free_shipping_enabled is False
        assert config.session_ttl_minutes == 30
        assert config.recheck_stock_on_complete is False

    def test_malformed_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("CHECKOUT_HANDLING_FEE", "two dollars")
        monkeypatch.setenv("CHECKOUT_SESSION_TTL_MINUTES", "an hour")

        config = CheckoutConfig.from_env()

        assert config.handling_fee == Decimal("0")
        assert config.session_ttl_minutes == 60

    def test_notification_timeout(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_TIMEOUT", "2.5")

        assert ServiceConfig.from_env().notification_timeout == 2.5

    def test_commerce_config_composes_checkout(self, monkeypatch):
        monkeypatch.setenv("CHECKOUT_SERVICE_PORT", "9100")

        assert CommerceConfig.from_env().checkout.service_port == 9100


class TestServiceWiring:
    """Config values reach the engines the service builds"""

    def test_engines_follow_config(self):
        config = CheckoutConfig(
            nexus_states=("CA",),
            handling_fee=Decimal("1.50"),
            free_shipping_enabled=False,
            session_ttl_minutes=15,
        )

        service = CheckoutService(repository=MagicMock(), config=config)

        assert service.shipping.config.handling_fee == Decimal("1.50")
        assert service.shipping.config.free_shipping_enabled is False
        assert service.tax.config.nexus_states == frozenset({"CA"})
        assert service.session_ttl.total_seconds() == 15 * 60
