"""
Checkout Service Business Logic

Prices carts, persists time-limited checkout sessions and promotes them
into paid, inventory-adjusted orders.

Uses dependency injection for testability:
- Repository is injected, not created
- Shipping and tax engines are pure and injected
- Notification sink and event bus are optional and never fail a checkout
"""

import asyncio
import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from core.config import CheckoutConfig

from .events.publishers import (
    publish_checkout_session_created,
    publish_order_completed,
    publish_order_created,
    publish_stock_decremented,
)
from .models import (
    Address,
    AddressValidation,
    CartLine,
    CheckoutQuote,
    CheckoutSession,
    CheckoutSessionResponse,
    FreeShippingStatus,
    Order,
    OrderStatus,
    PricedLine,
    Product,
    Region,
    ShippingMethod,
    ShippingRatesResponse,
    ShippingSummary,
    TaxRateInfo,
    TaxResult,
    TaxSummary,
    round_currency,
)
from .protocols import (
    CheckoutRepositoryProtocol,
    CheckoutValidationError,
    EventBusProtocol,
    InsufficientStockError,
    NotificationSinkProtocol,
    OrderNotFoundError,
    ProductInactiveError,
    ProductNotFoundError,
    SessionNotFoundError,
)
from .shipping_calculator import Clock, ShippingConfig, ShippingRateEngine, utc_now
from .tax_calculator import TaxConfig, TaxEngine

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_WEIGHT = Decimal("0.5")
DEFAULT_TAX_CATEGORY = "apparel"
CURRENCY = "USD"

ORDER_NUMBER_PREFIX = "WXC-"
SESSION_ID_PREFIX = "cs_"
_ORDER_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_session_id() -> str:
    return f"{SESSION_ID_PREFIX}{uuid.uuid4()}"


def generate_order_number() -> str:
    """WXC- followed by 8 uppercase base-36 characters taken from a UUID4"""
    value = uuid.uuid4().int
    chars = []
    for _ in range(8):
        value, index = divmod(value, len(_ORDER_ALPHABET))
        chars.append(_ORDER_ALPHABET[index])
    return ORDER_NUMBER_PREFIX + "".join(chars)


class CheckoutService:
    """
    Checkout pipeline.

    quote -> create_session -> complete, plus direct (pay later) orders.
    """

    def __init__(
        self,
        repository: CheckoutRepositoryProtocol,
        config: Optional[CheckoutConfig] = None,
        shipping_engine: Optional[ShippingRateEngine] = None,
        tax_engine: Optional[TaxEngine] = None,
        notification_sink: Optional[NotificationSinkProtocol] = None,
        event_bus: Optional[EventBusProtocol] = None,
        clock: Optional[Clock] = None,
        notification_timeout: float = 10.0,
    ):
        """
        Initialize checkout service with injected dependencies

        Args:
            repository: Products, sessions and orders
            config: Checkout options (defaults to CheckoutConfig())
            shipping_engine: Shipping calculator (built from config if omitted)
            tax_engine: Tax calculator (built from config if omitted)
            notification_sink: Delivers order confirmations (optional)
            event_bus: Optional event bus for publishing events
            clock: Returns the current aware datetime
            notification_timeout: Seconds to wait for the notification sink
        """
        self.repository = repository
        self.config = config or CheckoutConfig()
        self.clock = clock or utc_now
        self.shipping = shipping_engine or ShippingRateEngine(
            config=ShippingConfig(
                handling_fee=self.config.handling_fee,
                free_shipping_enabled=self.config.free_shipping_enabled,
            ),
            clock=self.clock,
        )
        self.tax = tax_engine or TaxEngine(config=TaxConfig.with_nexus(self.config.nexus_states))
        self.notification_sink = notification_sink
        self.event_bus = event_bus
        self.notification_timeout = notification_timeout
        self.session_ttl = timedelta(minutes=self.config.session_ttl_minutes)

        logger.info("CheckoutService initialized with dependency injection")

    # ====================
    # Pricing (no persistence)
    # ====================

    def get_shipping_rates(
        self,
        country: str,
        subtotal: Decimal,
        state: Optional[str] = None,
        weight: Decimal = Decimal("1"),
    ) -> ShippingRatesResponse:
        """All shipping options for a destination plus free-shipping status"""
        rates = self.shipping.get_all_rates(country, state, weight=weight, subtotal=subtotal)
        return ShippingRatesResponse(
            rates=rates,
            free_shipping=self.shipping.check_free_shipping(country, subtotal),
        )

    def calculate_tax(
        self,
        subtotal: Decimal,
        country: str,
        state: Optional[str] = None,
        postal_code: Optional[str] = None,
        shipping: Decimal = Decimal("0"),
        category: str = DEFAULT_TAX_CATEGORY,
    ) -> TaxResult:
        return self.tax.calculate(
            subtotal, country, state=state, postal_code=postal_code,
            category=category, shipping=shipping,
        )

    def get_tax_rate(self, country: str, state: Optional[str] = None) -> TaxRateInfo:
        country_code = country.strip().upper()
        region = state.strip().upper() if state else None
        return TaxRateInfo(
            country=country_code,
            state=region,
            rate=self.tax.get_tax_rate(country_code, region),
            tax_free=self.tax.is_tax_free(country_code, region),
        )

    def validate_address(self, address: Address) -> AddressValidation:
        return self.shipping.validate_address(address)

    def get_shipping_countries(self) -> List[Region]:
        return self.shipping.get_shipping_countries()

    def get_regions(self, country: str) -> List[Region]:
        return self.shipping.get_regions(country)

    async def quote(
        self,
        items: Sequence[CartLine],
        country: str,
        state: Optional[str] = None,
        postal_code: Optional[str] = None,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
    ) -> CheckoutQuote:
        """
        Price a cart for a destination.

        Read-only: identical inputs against an unchanged catalog give
        identical results.

        Raises:
            ProductNotFoundError: any line references a missing or inactive product
            CheckoutValidationError: empty cart or unusable destination
        """
        priced = await self._resolve_lines(items, check_stock=False)
        return self._price(priced, country, state, postal_code, shipping_method)

    # ====================
    # Session lifecycle
    # ====================

    async def create_session(
        self,
        items: Sequence[CartLine],
        email: str,
        shipping_address: Address,
        billing_address: Optional[Address] = None,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
    ) -> CheckoutSessionResponse:
        """
        Price a cart and persist it as a checkout session.

        Raises:
            CheckoutValidationError: shipping address incomplete or malformed
            ProductNotFoundError: any line references a missing or inactive product
            InsufficientStockError: a physical line exceeds inventory
        """
        validation = self.shipping.validate_address(shipping_address)
        if not validation.valid:
            raise CheckoutValidationError("Invalid shipping address", validation.errors)

        priced = await self._resolve_lines(items, check_stock=True)
        quote = self._price(
            priced,
            shipping_address.country,
            shipping_address.state,
            shipping_address.postal_code,
            shipping_method,
        )

        now = self.clock()
        session = CheckoutSession(
            session_id=generate_session_id(),
            email=email,
            items=quote.items,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            subtotal=quote.subtotal,
            shipping_cost=quote.shipping.cost,
            shipping_method=quote.shipping.method,
            tax_amount=quote.tax.amount,
            total=quote.total,
            expires_at=now + self.session_ttl,
            created_at=now,
        )
        session = await self.repository.create_session(session)
        logger.info(f"Checkout session {session.session_id} created, total {session.total}")

        await publish_checkout_session_created(self.event_bus, session)

        return CheckoutSessionResponse(
            session_id=session.session_id,
            items=session.items,
            shipping_address=session.shipping_address,
            billing_address=session.billing_address,
            shipping=quote.shipping,
            tax=quote.tax,
            subtotal=session.subtotal,
            total=session.total,
            currency=CURRENCY,
            expires_at=session.expires_at,
        )

    async def complete(
        self,
        session_id: str,
        customer_name: str,
        payment_intent_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Order:
        """
        Promote a checkout session into a paid order.

        Session consumption, order insert and stock decrements commit
        together. The confirmation is sent afterwards; its failure is
        logged and does not affect the order.

        Raises:
            SessionNotFoundError: session missing, consumed, or expired
            InsufficientStockError: stock ran out since the session was created
                (only when recheck_stock_on_complete is enabled)
        """
        now = self.clock()
        session = await self.repository.get_session(session_id)
        if session is None or session.is_expired(now):
            raise SessionNotFoundError(f"Checkout session {session_id} not found or expired")

        order = Order(
            order_number=generate_order_number(),
            customer_email=session.email,
            customer_name=customer_name,
            customer_phone=phone,
            shipping_address=session.shipping_address,
            billing_address=session.billing_address,
            items=session.items,
            subtotal=session.subtotal,
            shipping_cost=session.shipping_cost,
            shipping_method=session.shipping_method,
            tax_amount=session.tax_amount,
            total=session.total,
            status=OrderStatus.PAID,
            payment_intent_id=payment_intent_id,
            created_at=now,
            updated_at=now,
        )

        order = await self.repository.complete_checkout(
            session_id,
            order,
            now,
            guard_stock=self.config.recheck_stock_on_complete,
        )
        logger.info(f"Checkout session {session_id} completed as order {order.order_number}")

        await publish_order_completed(self.event_bus, order, session_id)
        await publish_stock_decremented(self.event_bus, order)
        await self._send_confirmation(order)
        return order

    # ====================
    # Direct orders
    # ====================

    async def place_order(
        self,
        items: Sequence[CartLine],
        email: str,
        customer_name: str,
        shipping_address: Address,
        phone: Optional[str] = None,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
    ) -> Order:
        """
        Place an order without a checkout session (payment collected later).

        Digital-only carts ship free. The order starts as pending.
        """
        validation = self.shipping.validate_address(shipping_address)
        if not validation.valid:
            raise CheckoutValidationError("Invalid shipping address", validation.errors)

        priced = await self._resolve_lines(items, check_stock=True)
        quote = self._price(
            priced,
            shipping_address.country,
            shipping_address.state,
            shipping_address.postal_code,
            shipping_method,
            digital_only_free=True,
        )

        now = self.clock()
        order = Order(
            order_number=generate_order_number(),
            customer_email=email,
            customer_name=customer_name,
            customer_phone=phone,
            shipping_address=shipping_address,
            billing_address=shipping_address,
            items=quote.items,
            subtotal=quote.subtotal,
            shipping_cost=quote.shipping.cost,
            shipping_method=quote.shipping.method,
            tax_amount=quote.tax.amount,
            total=quote.total,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        order = await self.repository.create_order(order, guard_stock=True)
        logger.info(f"Order {order.order_number} placed for {email}, total {order.total}")

        await publish_order_created(self.event_bus, order)
        await publish_stock_decremented(self.event_bus, order)
        await self._send_confirmation(order)
        return order

    async def get_order(self, order_number: str) -> Order:
        order = await self.repository.get_order(order_number)
        if order is None:
            raise OrderNotFoundError(f"Order {order_number} not found")
        return order

    # ====================
    # Internals
    # ====================

    async def _resolve_lines(self, items: Sequence[CartLine], check_stock: bool) -> List[PricedLine]:
        """Resolve every cart line against the catalog, all or nothing"""
        if not items:
            raise CheckoutValidationError("Cart is empty")

        product_ids = list(dict.fromkeys(line.product_id for line in items))
        products = await self.repository.get_products(product_ids)

        priced: List[PricedLine] = []
        requested: Dict[int, int] = {}
        for line in items:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFoundError(line.product_id)
            if not product.is_active:
                raise ProductInactiveError(line.product_id)

            priced.append(self._priced_line(product, line.quantity))
            requested[product.id] = requested.get(product.id, 0) + line.quantity

        if check_stock:
            for product_id, quantity in requested.items():
                product = products[product_id]
                if not product.is_digital and product.inventory_count < quantity:
                    raise InsufficientStockError(
                        product_id=product.id,
                        title=product.title,
                        requested=quantity,
                        available=product.inventory_count,
                    )

        return priced

    @staticmethod
    def _priced_line(product: Product, quantity: int) -> PricedLine:
        return PricedLine(
            product_id=product.id,
            title=product.title,
            unit_price=product.price,
            quantity=quantity,
            category=product.category or DEFAULT_TAX_CATEGORY,
            is_digital=product.is_digital,
            weight=product.weight if product.weight is not None else DEFAULT_PRODUCT_WEIGHT,
        )

    def _price(
        self,
        items: List[PricedLine],
        country: str,
        state: Optional[str],
        postal_code: Optional[str],
        shipping_method: ShippingMethod,
        digital_only_free: bool = False,
    ) -> CheckoutQuote:
        """Compose shipping and tax for resolved lines"""
        subtotal = round_currency(sum((item.line_total for item in items), Decimal("0")))
        weight = sum((item.line_weight for item in items), Decimal("0"))

        quote = self.shipping.quote(
            country, state, method=shipping_method, weight=weight, subtotal=subtotal,
        )
        shipping_cost = quote.total
        free_shipping = quote.free_shipping
        if digital_only_free and all(item.is_digital for item in items):
            shipping_cost = Decimal("0.00")
            free_shipping = FreeShippingStatus(
                eligible=True, method=quote.method, message="Digital orders ship free",
            )

        tax = self.tax.calculate(
            subtotal,
            country,
            state=state,
            postal_code=postal_code,
            category=self._tax_category(items),
            shipping=shipping_cost,
        )

        return CheckoutQuote(
            items=items,
            subtotal=subtotal,
            shipping=ShippingSummary(
                method=quote.method,
                method_name=quote.method_name,
                cost=shipping_cost,
                delivery_estimate=quote.delivery_estimate,
                free_shipping=free_shipping,
            ),
            tax=TaxSummary(
                rate=tax.tax_rate,
                amount=tax.tax_amount,
                breakdown=tax.breakdown,
                jurisdiction=tax.jurisdiction,
            ),
            total=round_currency(subtotal + shipping_cost + tax.tax_amount),
            currency=CURRENCY,
        )

    @staticmethod
    def _tax_category(items: List[PricedLine]) -> str:
        categories = {item.category for item in items}
        if len(categories) == 1:
            return categories.pop()
        return DEFAULT_TAX_CATEGORY

    async def _send_confirmation(self, order: Order) -> None:
        """Best effort: the order is already committed"""
        if self.notification_sink is None:
            return
        try:
            await asyncio.wait_for(
                self.notification_sink.send_order_confirmation(order),
                timeout=self.notification_timeout,
            )
        except Exception as e:
            logger.error(f"Failed to send confirmation for order {order.order_number}: {e}")

    async def health_check(self) -> Dict[str, object]:
        return {
            "service": "checkout_service",
            "status": "operational",
            "timestamp": self.clock().isoformat(),
        }


__all__ = [
    "CheckoutService",
    "generate_order_number",
    "generate_session_id",
]
