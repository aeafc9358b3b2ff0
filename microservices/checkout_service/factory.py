"""
Checkout Service Factory

Factory for creating CheckoutService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional, Tuple

from core.config import CommerceConfig

from .checkout_repository import CheckoutRepository
from .checkout_service import CheckoutService
from .clients import NotificationClient
from .notifications import EmailNotificationSink, LoggingNotificationSink

logger = logging.getLogger(__name__)


def create_checkout_service(
    config: Optional[CommerceConfig] = None,
    event_bus=None,
) -> Tuple[CheckoutService, Optional[NotificationClient]]:
    """
    Create CheckoutService with all real dependencies

    Args:
        config: Optional commerce config (loaded from the environment if not provided)
        event_bus: Optional event bus for event publishing

    Returns:
        The service and the notification client it sends through, or None
        when no notification service URL is configured (the caller closes
        the client on shutdown)
    """
    if config is None:
        config = CommerceConfig.from_env()

    repository = CheckoutRepository()

    notification_client = None
    if config.services.notification_service_url:
        notification_client = NotificationClient(config=config.services)
        notification_sink = EmailNotificationSink(notification_client)
    else:
        logger.warning("NOTIFICATION_SERVICE_URL is empty; order confirmations will only be logged")
        notification_sink = LoggingNotificationSink()

    logger.info("CheckoutService created with real dependencies")

    service = CheckoutService(
        repository=repository,
        config=config.checkout,
        notification_sink=notification_sink,
        event_bus=event_bus,
        notification_timeout=config.services.notification_timeout,
    )
    return service, notification_client


__all__ = ["create_checkout_service"]
