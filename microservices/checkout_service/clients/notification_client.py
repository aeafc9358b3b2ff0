"""
Notification Service Client for Checkout Service

HTTP client for synchronous communication with notification_service
"""

import httpx
import logging
from typing import Optional, Dict, Any

from core.config import ServiceConfig

logger = logging.getLogger(__name__)


class NotificationClient:
    """Client for notification_service"""

    def __init__(self, base_url: Optional[str] = None, config: Optional[ServiceConfig] = None):
        """
        Initialize Notification Service client

        Args:
            base_url: Notification service base URL
            config: ServiceConfig with the default URL and timeout
        """
        if config is None:
            config = ServiceConfig.from_env()

        self.base_url = (base_url or config.notification_service_url).rstrip('/')
        self.client = httpx.AsyncClient(timeout=config.notification_timeout)
        logger.info(f"NotificationClient initialized with base_url: {self.base_url}")

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def send_email(
        self,
        recipient: str,
        subject: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Send a plain-text e-mail

        Args:
            recipient: E-mail address
            subject: Subject line
            content: Message body
            metadata: Extra data stored with the notification

        Returns:
            True if the notification service accepted the message
        """
        try:
            payload = {
                "type": "email",
                "recipient_email": recipient,
                "subject": subject,
                "content": content,
                "priority": "normal",
                "metadata": metadata or {}
            }

            response = await self.client.post(
                f"{self.base_url}/api/v1/notifications/send",
                json=payload
            )
            response.raise_for_status()
            logger.info(f"E-mail '{subject}' sent to {recipient}")
            return True

        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to send e-mail: {e.response.status_code}")
            return False
        except Exception as e:
            logger.error(f"Error sending e-mail: {e}")
            return False

    async def health_check(self) -> bool:
        """Check if notification service is reachable"""
        try:
            response = await self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except Exception:
            return False
