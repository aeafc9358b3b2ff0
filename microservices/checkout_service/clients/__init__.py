"""
Checkout Service Clients Module

HTTP clients for the services checkout depends on
"""

from .notification_client import NotificationClient

__all__ = [
    "NotificationClient",
]
