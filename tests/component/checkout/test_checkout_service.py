"""
Component Tests for CheckoutService

quote -> create_session -> complete against the in-memory repository.
"""

import asyncio
import pytest
from datetime import timedelta
from decimal import Decimal

from core.config import CheckoutConfig
from microservices.checkout_service.checkout_service import CheckoutService
from microservices.checkout_service.models import (
    Address,
    CartLine,
    OrderStatus,
    ShippingMethod,
)
from microservices.checkout_service.protocols import (
    CheckoutValidationError,
    InsufficientStockError,
    OrderNotFoundError,
    ProductInactiveError,
    ProductNotFoundError,
    SessionNotFoundError,
)

pytestmark = [pytest.mark.component]


def _address(factory, **overrides) -> Address:
    return Address.model_validate({**factory.make_us_address(), **overrides})


class TestQuote:
    """Pricing without persistence"""

    @pytest.mark.asyncio
    async def test_end_to_end_california_quote(self, checkout_service, tee_shirt):
        quote = await checkout_service.quote(
            [CartLine(product_id=tee_shirt.id, quantity=2)], country="US", state="CA",
        )

        assert quote.subtotal == Decimal("70.00")
        assert quote.shipping.cost == Decimal("5.99")
        assert quote.shipping.free_shipping.eligible is False
        assert quote.tax.amount == Decimal("5.08")
        assert quote.tax.rate == Decimal("0.0725")
        assert quote.total == Decimal("81.07")
        assert quote.currency == "USD"

    @pytest.mark.asyncio
    async def test_quote_is_repeatable(self, checkout_service, tee_shirt):
        lines = [CartLine(product_id=tee_shirt.id, quantity=2)]

        first = await checkout_service.quote(lines, country="US", state="NY", postal_code="10001")
        second = await checkout_service.quote(lines, country="US", state="NY", postal_code="10001")

        assert first.model_dump_json() == second.model_dump_json()

    @pytest.mark.asyncio
    async def test_quote_does_not_persist(self, checkout_service, mock_repository, tee_shirt):
        await checkout_service.quote([CartLine(product_id=tee_shirt.id, quantity=1)], country="US", state="CA")

        assert mock_repository.method_calls == ["get_products"]
        assert mock_repository.products[tee_shirt.id].inventory_count == 10
        assert mock_repository.sessions == {}

    @pytest.mark.asyncio
    async def test_quote_missing_product_aborts(self, checkout_service, tee_shirt):
        lines = [CartLine(product_id=tee_shirt.id, quantity=1), CartLine(product_id=999999, quantity=1)]

        with pytest.raises(ProductNotFoundError) as exc_info:
            await checkout_service.quote(lines, country="US", state="CA")

        assert exc_info.value.product_id == 999999

    @pytest.mark.asyncio
    async def test_quote_inactive_product_is_not_found(self, checkout_service, mock_repository):
        retired = mock_repository.add_product(is_active=False)

        with pytest.raises(ProductNotFoundError) as exc_info:
            await checkout_service.quote([CartLine(product_id=retired.id, quantity=1)], country="US", state="CA")

        assert isinstance(exc_info.value, ProductInactiveError)

    @pytest.mark.asyncio
    async def test_quote_does_not_check_stock(self, checkout_service, mock_repository):
        scarce = mock_repository.add_product(inventory_count=1)

        quote = await checkout_service.quote([CartLine(product_id=scarce.id, quantity=5)], country="US", state="CA")

        assert quote.items[0].quantity == 5

    @pytest.mark.asyncio
    async def test_quote_empty_cart(self, checkout_service):
        with pytest.raises(CheckoutValidationError):
            await checkout_service.quote([], country="US", state="CA")

    @pytest.mark.asyncio
    async def test_missing_weight_defaults_to_half_pound(self, checkout_service, mock_repository):
        weightless = mock_repository.add_product(weight=None, price=Decimal("10.00"))

        # 6 x 0.5 lb = 3 lb -> 2 lb over the first -> 1.00 surcharge
        quote = await checkout_service.quote(
            [CartLine(product_id=weightless.id, quantity=6)], country="US", state="CA",
        )

        assert quote.items[0].weight == Decimal("0.5")
        assert quote.shipping.cost == Decimal("6.99")

    @pytest.mark.asyncio
    async def test_free_shipping_over_threshold(self, checkout_service, mock_repository):
        jacket = mock_repository.add_product(price=Decimal("80.00"))

        quote = await checkout_service.quote([CartLine(product_id=jacket.id, quantity=1)], country="US", state="CA")

        assert quote.shipping.cost == Decimal("0")
        assert quote.tax.amount == Decimal("5.80")
        assert quote.total == Decimal("85.80")

    @pytest.mark.asyncio
    async def test_express_is_never_free(self, checkout_service, mock_repository):
        jacket = mock_repository.add_product(price=Decimal("80.00"))

        quote = await checkout_service.quote(
            [CartLine(product_id=jacket.id, quantity=1)], country="US", state="CA",
            shipping_method=ShippingMethod.EXPRESS,
        )

        assert quote.shipping.cost == Decimal("12.99")

    @pytest.mark.asyncio
    async def test_shipping_taxed_in_texas(self, checkout_service, tee_shirt):
        quote = await checkout_service.quote([CartLine(product_id=tee_shirt.id, quantity=2)], country="US", state="TX")

        # zone 3 standard 7.99; (70 + 7.99) x 6.25% = 4.874375
        assert quote.shipping.cost == Decimal("7.99")
        assert quote.tax.amount == Decimal("4.87")
        assert quote.total == Decimal("82.86")


class TestCreateSession:
    """Session creation"""

    @pytest.mark.asyncio
    async def test_create_session_persists_priced_session(
        self, checkout_service, mock_repository, tee_shirt, factory, clock, mock_event_bus
    ):
        result = await checkout_service.create_session(
            [CartLine(product_id=tee_shirt.id, quantity=2)],
            email="buyer@example.com",
            shipping_address=_address(factory),
        )

        assert result.session_id.startswith("cs_")
        assert result.total == Decimal("81.07")
        assert result.expires_at == clock.now + timedelta(hours=1)

        stored = mock_repository.sessions[result.session_id]
        assert stored.shipping_cost == Decimal("5.99")
        assert stored.tax_amount == Decimal("5.08")
        assert stored.billing_address == stored.shipping_address
        mock_event_bus.assert_event_published("checkout.session_created")

    @pytest.mark.asyncio
    async def test_create_session_insufficient_stock(self, checkout_service, mock_repository, factory):
        scarce = mock_repository.add_product(title="Limited Hoodie", inventory_count=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            await checkout_service.create_session(
                [CartLine(product_id=scarce.id, quantity=2)],
                email="buyer@example.com",
                shipping_address=_address(factory),
            )

        assert exc_info.value.title == "Limited Hoodie"
        assert exc_info.value.available == 1
        assert mock_repository.sessions == {}

    @pytest.mark.asyncio
    async def test_stock_check_sums_repeated_lines(self, checkout_service, mock_repository, factory):
        product = mock_repository.add_product(inventory_count=3)
        lines = [CartLine(product_id=product.id, quantity=2), CartLine(product_id=product.id, quantity=2)]

        with pytest.raises(InsufficientStockError):
            await checkout_service.create_session(
                lines, email="buyer@example.com", shipping_address=_address(factory),
            )

    @pytest.mark.asyncio
    async def test_digital_lines_skip_stock_check(self, checkout_service, digital_print, factory):
        result = await checkout_service.create_session(
            [CartLine(product_id=digital_print.id, quantity=3)],
            email="buyer@example.com",
            shipping_address=_address(factory),
        )

        assert result.items[0].is_digital is True

    @pytest.mark.asyncio
    async def test_invalid_address_rejected_before_persisting(
        self, checkout_service, mock_repository, tee_shirt, factory
    ):
        address = Address.model_validate(factory.make_invalid_us_address())

        with pytest.raises(CheckoutValidationError) as exc_info:
            await checkout_service.create_session(
                [CartLine(product_id=tee_shirt.id, quantity=1)],
                email="buyer@example.com",
                shipping_address=address,
            )

        assert "State is required for US addresses" in exc_info.value.errors
        assert "Invalid ZIP code format" in exc_info.value.errors
        assert mock_repository.sessions == {}


class TestComplete:
    """Session completion"""

    async def _session(self, service, product, factory, quantity=2):
        result = await service.create_session(
            [CartLine(product_id=product.id, quantity=quantity)],
            email="buyer@example.com",
            shipping_address=_address(factory),
        )
        return result.session_id

    @pytest.mark.asyncio
    async def test_complete_creates_paid_order(
        self, checkout_service, mock_repository, tee_shirt, factory, notification_sink, mock_event_bus
    ):
        session_id = await self._session(checkout_service, tee_shirt, factory)

        order = await checkout_service.complete(session_id, customer_name="Ada", payment_intent_id="pi_123")

        assert order.status == OrderStatus.PAID
        assert order.order_number.startswith("WXC-")
        assert order.total == Decimal("81.07")
        assert order.payment_intent_id == "pi_123"
        assert mock_repository.orders[order.order_number] == order
        assert mock_repository.products[tee_shirt.id].inventory_count == 8
        assert session_id not in mock_repository.sessions
        assert notification_sink.sent == [order]
        mock_event_bus.assert_event_published("order.completed", {"order_number": order.order_number})
        mock_event_bus.assert_event_published("inventory.stock_decremented")

    @pytest.mark.asyncio
    async def test_session_consumed_once(self, checkout_service, tee_shirt, factory):
        session_id = await self._session(checkout_service, tee_shirt, factory)
        await checkout_service.complete(session_id, customer_name="Ada")

        with pytest.raises(SessionNotFoundError):
            await checkout_service.complete(session_id, customer_name="Ada")

    @pytest.mark.asyncio
    async def test_unknown_session(self, checkout_service):
        with pytest.raises(SessionNotFoundError):
            await checkout_service.complete("cs_missing", customer_name="Ada")

    @pytest.mark.asyncio
    async def test_complete_just_before_expiry(self, checkout_service, tee_shirt, factory, clock):
        session_id = await self._session(checkout_service, tee_shirt, factory)
        clock.advance(hours=1, seconds=-1)

        order = await checkout_service.complete(session_id, customer_name="Ada")

        assert order.status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_complete_just_after_expiry(self, checkout_service, mock_repository, tee_shirt, factory, clock):
        session_id = await self._session(checkout_service, tee_shirt, factory)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(SessionNotFoundError):
            await checkout_service.complete(session_id, customer_name="Ada")

        assert mock_repository.orders == {}
        assert mock_repository.products[tee_shirt.id].inventory_count == 10

    @pytest.mark.asyncio
    async def test_digital_lines_not_decremented(self, checkout_service, mock_repository, digital_print, tee_shirt, factory):
        result = await checkout_service.create_session(
            [CartLine(product_id=digital_print.id, quantity=1), CartLine(product_id=tee_shirt.id, quantity=1)],
            email="buyer@example.com",
            shipping_address=_address(factory),
        )

        await checkout_service.complete(result.session_id, customer_name="Ada")

        assert mock_repository.products[digital_print.id].inventory_count == 0
        assert mock_repository.products[tee_shirt.id].inventory_count == 9

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_completion(
        self, mock_repository, mock_event_bus, clock, tee_shirt, factory, failing_sink
    ):
        sink = failing_sink
        service = CheckoutService(
            repository=mock_repository,
            notification_sink=sink,
            event_bus=mock_event_bus,
            clock=clock,
        )
        session_id = await self._session(service, tee_shirt, factory)

        order = await service.complete(session_id, customer_name="Ada")

        assert sink.attempts == 1
        assert order.order_number in mock_repository.orders
        assert session_id not in mock_repository.sessions

    @pytest.mark.asyncio
    async def test_event_bus_failure_does_not_fail_completion(
        self, checkout_service, mock_repository, mock_event_bus, tee_shirt, factory
    ):
        session_id = await self._session(checkout_service, tee_shirt, factory)
        mock_event_bus.set_error(RuntimeError("nats down"))

        order = await checkout_service.complete(session_id, customer_name="Ada")

        assert order.order_number in mock_repository.orders

    @pytest.mark.asyncio
    async def test_recheck_rejects_depleted_stock(self, checkout_service, mock_repository, factory):
        product = mock_repository.add_product(inventory_count=2)
        session_id = await self._session(checkout_service, product, factory, quantity=2)
        mock_repository.products[product.id].inventory_count = 1

        with pytest.raises(InsufficientStockError):
            await checkout_service.complete(session_id, customer_name="Ada")

        # Nothing committed; the session can still be completed later
        assert session_id in mock_repository.sessions
        assert mock_repository.orders == {}
        assert mock_repository.products[product.id].inventory_count == 1


class TestConcurrentCompletion:
    """Stock counters under concurrent completion"""

    async def _sessions(self, service, product, factory, count, quantity):
        ids = []
        for _ in range(count):
            result = await service.create_session(
                [CartLine(product_id=product.id, quantity=quantity)],
                email="buyer@example.com",
                shipping_address=_address(factory),
            )
            ids.append(result.session_id)
        return ids

    @pytest.mark.asyncio
    async def test_no_lost_updates(self, checkout_service, mock_repository, factory):
        product = mock_repository.add_product(inventory_count=10)
        session_ids = await self._sessions(checkout_service, product, factory, count=10, quantity=1)

        orders = await asyncio.gather(*[
            checkout_service.complete(sid, customer_name="Ada") for sid in session_ids
        ])

        assert len({o.order_number for o in orders}) == 10
        assert mock_repository.products[product.id].inventory_count == 0

    @pytest.mark.asyncio
    async def test_oversold_completion_is_rejected(self, checkout_service, mock_repository, factory):
        product = mock_repository.add_product(inventory_count=5)
        session_ids = await self._sessions(checkout_service, product, factory, count=2, quantity=3)

        results = await asyncio.gather(
            *[checkout_service.complete(sid, customer_name="Ada") for sid in session_ids],
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 1
        assert len(failed) == 1 and isinstance(failed[0], InsufficientStockError)
        assert mock_repository.products[product.id].inventory_count == 5 - 3

    @pytest.mark.asyncio
    async def test_without_recheck_every_decrement_lands(
        self, mock_repository, mock_event_bus, clock, factory
    ):
        service = CheckoutService(
            repository=mock_repository,
            config=CheckoutConfig(recheck_stock_on_complete=False),
            event_bus=mock_event_bus,
            clock=clock,
        )
        product = mock_repository.add_product(inventory_count=5)
        session_ids = await self._sessions(service, product, factory, count=2, quantity=3)

        await asyncio.gather(*[service.complete(sid, customer_name="Ada") for sid in session_ids])

        assert mock_repository.products[product.id].inventory_count == 5 - 6


class TestDirectOrders:
    """Orders placed without a session"""

    @pytest.mark.asyncio
    async def test_place_order_is_pending(self, checkout_service, mock_repository, tee_shirt, factory):
        order = await checkout_service.place_order(
            [CartLine(product_id=tee_shirt.id, quantity=1)],
            email="buyer@example.com",
            customer_name="Ada",
            shipping_address=_address(factory),
        )

        assert order.status == OrderStatus.PENDING
        assert order.shipping_cost == Decimal("5.99")
        assert mock_repository.products[tee_shirt.id].inventory_count == 9

    @pytest.mark.asyncio
    async def test_digital_only_orders_ship_free(self, checkout_service, digital_print, factory, mock_event_bus):
        order = await checkout_service.place_order(
            [CartLine(product_id=digital_print.id, quantity=2)],
            email="buyer@example.com",
            customer_name="Ada",
            shipping_address=_address(factory),
        )

        assert order.shipping_cost == Decimal("0")
        assert order.subtotal == Decimal("30.00")
        # CA tax on 30.00 only
        assert order.tax_amount == Decimal("2.18")
        assert order.total == Decimal("32.18")
        mock_event_bus.assert_event_published("order.created")

    @pytest.mark.asyncio
    async def test_get_order(self, checkout_service, tee_shirt, factory):
        placed = await checkout_service.place_order(
            [CartLine(product_id=tee_shirt.id, quantity=1)],
            email="buyer@example.com",
            customer_name="Ada",
            shipping_address=_address(factory),
        )

        found = await checkout_service.get_order(placed.order_number)

        assert found.order_number == placed.order_number

    @pytest.mark.asyncio
    async def test_get_order_not_found(self, checkout_service):
        with pytest.raises(OrderNotFoundError):
            await checkout_service.get_order("WXC-00000000")
