"""
Checkout Service Event Publishers

Functions to publish events from checkout service.
Publishing never raises: failures are logged and reported as False.
"""

import logging
from typing import List, Optional

from core.nats_client import Event, EventType, ServiceSource
from ..models import CheckoutSession, Order
from .models import (
    CheckoutSessionCreatedEvent,
    OrderCreatedEvent,
    OrderCompletedEvent,
    StockDecrementedEvent,
)

logger = logging.getLogger(__name__)


def _item_payload(order: Order) -> List[dict]:
    return [item.model_dump(mode='json') for item in order.items]


async def publish_checkout_session_created(event_bus, session: CheckoutSession) -> bool:
    """Publish checkout.session_created event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping checkout.session_created event")
        return False

    try:
        event_data = CheckoutSessionCreatedEvent(
            session_id=session.session_id,
            email=session.email,
            item_count=sum(item.quantity for item in session.items),
            total=float(session.total),
            expires_at=session.expires_at,
        )

        event = Event(
            event_type=EventType.CHECKOUT_SESSION_CREATED,
            source=ServiceSource.CHECKOUT_SERVICE,
            data=event_data.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"Published checkout.session_created event for session {session.session_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish checkout.session_created event: {e}")
        return False


async def publish_order_created(event_bus, order: Order) -> bool:
    """Publish order.created event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping order.created event")
        return False

    try:
        event_data = OrderCreatedEvent(
            order_number=order.order_number,
            customer_email=order.customer_email,
            status=order.status.value,
            total=float(order.total),
            items=_item_payload(order),
        )

        event = Event(
            event_type=EventType.ORDER_CREATED,
            source=ServiceSource.CHECKOUT_SERVICE,
            data=event_data.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"Published order.created event for order {order.order_number}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish order.created event: {e}")
        return False


async def publish_order_completed(
    event_bus,
    order: Order,
    session_id: str,
) -> bool:
    """Publish order.completed event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping order.completed event")
        return False

    try:
        event_data = OrderCompletedEvent(
            order_number=order.order_number,
            session_id=session_id,
            customer_email=order.customer_email,
            total=float(order.total),
            payment_intent_id=order.payment_intent_id,
            items=_item_payload(order),
        )

        event = Event(
            event_type=EventType.ORDER_COMPLETED,
            source=ServiceSource.CHECKOUT_SERVICE,
            data=event_data.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"Published order.completed event for order {order.order_number}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish order.completed event: {e}")
        return False


async def publish_stock_decremented(event_bus, order: Order) -> bool:
    """Publish inventory.stock_decremented event for the physical lines of an order"""
    if not event_bus:
        logger.warning("Event bus not available, skipping inventory.stock_decremented event")
        return False

    decrements = [
        {"product_id": item.product_id, "quantity": item.quantity}
        for item in order.items
        if not item.is_digital
    ]
    if not decrements:
        return False

    try:
        event_data = StockDecrementedEvent(
            order_number=order.order_number,
            decrements=decrements,
        )

        event = Event(
            event_type=EventType.STOCK_DECREMENTED,
            source=ServiceSource.CHECKOUT_SERVICE,
            data=event_data.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"Published inventory.stock_decremented event for order {order.order_number}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish inventory.stock_decremented event: {e}")
        return False
