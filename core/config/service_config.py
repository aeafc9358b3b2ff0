#!/usr/bin/env python3
"""Service configuration for peer services

Endpoints of the services the checkout pipeline talks to over HTTP.
"""
import os
from dataclasses import dataclass


@dataclass
class ServiceConfig:
    """Peer service endpoints"""

    # Order confirmation e-mails are delivered by the notification service;
    # an empty URL logs confirmations instead
    notification_service_url: str = "http://localhost:8206"
    notification_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        try:
            timeout = float(os.getenv("NOTIFICATION_TIMEOUT", "10"))
        except ValueError:
            timeout = 10.0
        return cls(
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", "http://localhost:8206"),
            notification_timeout=timeout,
        )
