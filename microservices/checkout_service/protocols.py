"""
Checkout Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from .models import CheckoutSession, Order, Product, ProductId


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class CheckoutServiceError(Exception):
    """Base exception for checkout service errors"""
    pass


class CheckoutValidationError(CheckoutServiceError):
    """Invalid checkout input; carries every problem found"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class ProductNotFoundError(CheckoutServiceError):
    """Product missing from the catalog"""

    def __init__(self, product_id: ProductId, message: Optional[str] = None):
        super().__init__(message or f"Product {product_id} not found")
        self.product_id = product_id


class ProductInactiveError(ProductNotFoundError):
    """Product exists but is not for sale"""

    def __init__(self, product_id: ProductId):
        super().__init__(product_id, f"Product {product_id} is not available")


class InsufficientStockError(CheckoutServiceError):
    """Requested quantity exceeds inventory"""

    def __init__(self, product_id: ProductId, title: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {title}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.title = title
        self.requested = requested
        self.available = available


class SessionNotFoundError(CheckoutServiceError):
    """Checkout session missing, already consumed, or expired"""
    pass


class OrderNotFoundError(CheckoutServiceError):
    """Order not found"""
    pass


class NotificationDeliveryError(CheckoutServiceError):
    """Confirmation could not be delivered"""
    pass


# ============================================================================
# Repository Protocols
# ============================================================================

@runtime_checkable
class ProductCatalogProtocol(Protocol):
    """Read access to products"""

    async def get_products(self, product_ids: List[ProductId]) -> Dict[ProductId, Product]:
        """Get products by ID. Missing IDs are absent from the result."""
        ...


@runtime_checkable
class CheckoutRepositoryProtocol(ProductCatalogProtocol, Protocol):
    """
    Interface for Checkout Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def create_session(self, session: CheckoutSession) -> CheckoutSession:
        """Persist a checkout session"""
        ...

    async def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        """Get session by ID, regardless of expiry"""
        ...

    async def complete_checkout(
        self,
        session_id: str,
        order: Order,
        now: datetime,
        guard_stock: bool = True,
    ) -> Order:
        """
        In one transaction: consume the unexpired session, insert the order,
        and decrement inventory for every non-digital line.

        Raises:
            SessionNotFoundError: session already consumed or expired at `now`
            InsufficientStockError: guard_stock is set and a product ran short
        """
        ...

    async def create_order(self, order: Order, guard_stock: bool = True) -> Order:
        """Insert an order and decrement inventory for non-digital lines in one transaction"""
        ...

    async def get_order(self, order_number: str) -> Optional[Order]:
        """Get order by order number"""
        ...


# ============================================================================
# Client Protocols
# ============================================================================

@runtime_checkable
class NotificationSinkProtocol(Protocol):
    """Delivers order confirmations"""

    async def send_order_confirmation(self, order: Order) -> None:
        """Send confirmation; raises NotificationDeliveryError on failure"""
        ...


@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event"""
        ...
