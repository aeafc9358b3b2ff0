"""
Order Confirmation Notifications

Renders the confirmation e-mail for a placed order and hands it to the
notification service.
"""

import logging
from typing import Optional, Protocol, Tuple

from .models import Order
from .protocols import NotificationDeliveryError

logger = logging.getLogger(__name__)

SIGNATURE = "- WYATT XXX COLE"


class EmailSender(Protocol):
    async def send_email(self, recipient: str, subject: str, content: str, metadata=None) -> bool:
        ...


def render_order_confirmation(order: Order) -> Tuple[str, str]:
    """Return (subject, body) for an order confirmation e-mail"""
    subject = f"Order Confirmation #{order.order_number}"

    item_lines = "\n".join(
        f"- {item.title} x{item.quantity}: ${item.line_total:.2f}"
        for item in order.items
    )

    body = (
        "Thank you for your order!\n"
        "\n"
        f"Order Number: {order.order_number}\n"
        "\n"
        "Items:\n"
        f"{item_lines}\n"
        "\n"
        f"Subtotal: ${order.subtotal:.2f}\n"
        f"Shipping: ${order.shipping_cost:.2f}\n"
        f"Tax: ${order.tax_amount:.2f}\n"
        f"Total: ${order.total:.2f}\n"
        "\n"
        "We'll notify you when your order ships.\n"
        "\n"
        f"{SIGNATURE}\n"
    )
    return subject, body


class EmailNotificationSink:
    """NotificationSink that e-mails confirmations through the notification service"""

    def __init__(self, sender: EmailSender):
        self.sender = sender

    async def send_order_confirmation(self, order: Order) -> None:
        subject, body = render_order_confirmation(order)
        sent = await self.sender.send_email(
            recipient=order.customer_email,
            subject=subject,
            content=body,
            metadata={"order_number": order.order_number, "kind": "order_confirmation"},
        )
        if not sent:
            raise NotificationDeliveryError(
                f"Confirmation for order {order.order_number} was not delivered"
            )


class LoggingNotificationSink:
    """NotificationSink used when no notification service is configured"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def send_order_confirmation(self, order: Order) -> None:
        subject, _ = render_order_confirmation(order)
        self.log.info(f"[notification] {subject} -> {order.customer_email}")
