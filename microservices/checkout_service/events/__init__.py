"""
Checkout Service Events Module

Exports all event-related functionality for checkout service
"""

from .models import (
    CheckoutSessionCreatedEvent,
    OrderCreatedEvent,
    OrderCompletedEvent,
    StockDecrementedEvent,
)

from .publishers import (
    publish_checkout_session_created,
    publish_order_created,
    publish_order_completed,
    publish_stock_decremented,
)

__all__ = [
    # Event Models
    "CheckoutSessionCreatedEvent",
    "OrderCreatedEvent",
    "OrderCompletedEvent",
    "StockDecrementedEvent",
    # Publishers
    "publish_checkout_session_created",
    "publish_order_created",
    "publish_order_completed",
    "publish_stock_decremented",
]
