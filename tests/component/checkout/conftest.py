"""
Component Test Fixtures for Checkout Service

Provides an in-memory repository, a controllable clock, notification sinks
and a FastAPI TestClient wired to them.
"""

import asyncio
import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import CheckoutConfig
from microservices.checkout_service.checkout_service import CheckoutService
from microservices.checkout_service.models import (
    CheckoutSession,
    Order,
    PricedLine,
    Product,
)
from microservices.checkout_service.protocols import (
    InsufficientStockError,
    NotificationDeliveryError,
    SessionNotFoundError,
)
from tests.contracts.checkout import CheckoutTestDataFactory

# Wednesday
START_TIME = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for session expiry and delivery estimates"""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class MockCheckoutRepository:
    """
    In-memory repository for component testing.

    complete_checkout and create_order hold a lock across the whole unit
    so stock checks and decrements behave like one transaction.
    """

    def __init__(self):
        self.products: Dict[int, Product] = {}
        self.sessions: Dict[str, CheckoutSession] = {}
        self.orders: Dict[str, Order] = {}
        self.method_calls: List[str] = []
        self._lock = asyncio.Lock()
        self.db = MagicMock()

    def add_product(self, **overrides) -> Product:
        product = Product(**CheckoutTestDataFactory.make_product(**overrides))
        self.products[product.id] = product
        return product

    async def initialize(self):
        pass

    async def health_check(self):
        return {"healthy": True}

    async def get_products(self, product_ids):
        self.method_calls.append("get_products")
        return {
            pid: self.products[pid].model_copy()
            for pid in product_ids
            if pid in self.products
        }

    async def create_session(self, session: CheckoutSession) -> CheckoutSession:
        self.method_calls.append("create_session")
        self.sessions[session.session_id] = session
        return session

    async def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        self.method_calls.append("get_session")
        return self.sessions.get(session_id)

    async def complete_checkout(self, session_id, order, now, guard_stock=True):
        self.method_calls.append("complete_checkout")
        async with self._lock:
            session = self.sessions.get(session_id)
            if session is None or session.expires_at <= now:
                raise SessionNotFoundError(f"Checkout session {session_id} not found or expired")

            # Let other tasks run between the check and the write
            await asyncio.sleep(0)

            self._apply_decrements(order.items, guard_stock)
            del self.sessions[session_id]
            self.orders[order.order_number] = order
        return order

    async def create_order(self, order, guard_stock=True):
        self.method_calls.append("create_order")
        async with self._lock:
            await asyncio.sleep(0)
            self._apply_decrements(order.items, guard_stock)
            self.orders[order.order_number] = order
        return order

    async def get_order(self, order_number: str) -> Optional[Order]:
        self.method_calls.append("get_order")
        return self.orders.get(order_number)

    def _apply_decrements(self, items: List[PricedLine], guard_stock: bool):
        """Validate every decrement first so a shortfall changes nothing"""
        quantities: Dict[int, int] = {}
        for item in items:
            if not item.is_digital:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        if guard_stock:
            for product_id, quantity in quantities.items():
                product = self.products[product_id]
                if product.inventory_count < quantity:
                    raise InsufficientStockError(
                        product_id=product_id,
                        title=product.title,
                        requested=quantity,
                        available=product.inventory_count,
                    )

        for product_id, quantity in quantities.items():
            self.products[product_id].inventory_count -= quantity


class RecordingNotificationSink:
    """Captures confirmations instead of sending them"""

    def __init__(self):
        self.sent: List[Order] = []

    async def send_order_confirmation(self, order: Order) -> None:
        self.sent.append(order)


class FailingNotificationSink:
    """Always fails to deliver"""

    def __init__(self):
        self.attempts = 0

    async def send_order_confirmation(self, order: Order) -> None:
        self.attempts += 1
        raise NotificationDeliveryError("SMTP relay unavailable")


# ====================
# Fixtures
# ====================


@pytest.fixture
def factory():
    return CheckoutTestDataFactory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_repository():
    return MockCheckoutRepository()


@pytest.fixture
def notification_sink():
    return RecordingNotificationSink()


@pytest.fixture
def checkout_config():
    return CheckoutConfig()


@pytest.fixture
def checkout_service(mock_repository, notification_sink, mock_event_bus, clock, checkout_config):
    return CheckoutService(
        repository=mock_repository,
        config=checkout_config,
        notification_sink=notification_sink,
        event_bus=mock_event_bus,
        clock=clock,
    )


@pytest.fixture
def tee_shirt(mock_repository):
    """35.00 apparel item, 0.5 lb, 10 in stock"""
    return mock_repository.add_product(
        title="Logo Tee", price=Decimal("35.00"), weight=Decimal("0.5"), inventory_count=10,
    )


@pytest.fixture
def digital_print(mock_repository):
    """Digital download, never out of stock"""
    return mock_repository.add_product(
        title="Digital Print", price=Decimal("15.00"), weight=None,
        inventory_count=0, is_digital=True, category="digital",
    )


@pytest.fixture
def client(checkout_service, mock_repository, mock_event_bus):
    """Create FastAPI test client with mocked dependencies"""
    from fastapi.testclient import TestClient

    # Patch the globals in main module
    with patch("microservices.checkout_service.main.checkout_service", checkout_service), \
         patch("microservices.checkout_service.main.repository", mock_repository), \
         patch("microservices.checkout_service.main.event_bus", mock_event_bus):

        from microservices.checkout_service.main import app

        # Not used as a context manager, so the lifespan (NATS, PostgreSQL) never runs
        yield TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def failing_sink():
    return FailingNotificationSink()
