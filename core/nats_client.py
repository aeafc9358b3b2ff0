"""
NATS JetStream Client for Python Microservices

Event-driven communication between the commerce services, on top of nats-py.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

import nats
from nats.aio.client import Client as NATS
from nats.js import JetStreamContext

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class EventType(Enum):
    """Event types published by the commerce services"""

    # Checkout Events
    CHECKOUT_SESSION_CREATED = "checkout.session_created"

    # Order Events
    ORDER_CREATED = "order.created"
    ORDER_COMPLETED = "order.completed"

    # Inventory Events
    STOCK_DECREMENTED = "inventory.stock_decremented"


class ServiceSource(Enum):
    """Service sources"""

    CHECKOUT_SERVICE = "checkout_service"


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }


class NATSEventBus:
    """
    NATS JetStream event bus.

    Events are published to a stream per subject prefix
    (order.* -> order-stream, checkout.* -> checkout-stream, ...).
    """

    def __init__(self, service_name: str, config: Optional[InfraConfig] = None):
        """
        Initialize NATS Event Bus.

        Args:
            service_name: Name of the service (used as the connection name)
            config: Infrastructure configuration (defaults to InfraConfig.from_env())
        """
        if config is None:
            config = InfraConfig.from_env()

        self.service_name = service_name
        self.servers = config.nats_servers

        self._nc: Optional[NATS] = None
        self._js: Optional[JetStreamContext] = None
        self._streams: set = set()

        logger.info(f"NATS EventBus initialized: {self.servers}")

    async def connect(self):
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(servers=[self.servers], name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    async def _ensure_stream(self, event_type: str) -> str:
        """Create the stream for an event type's prefix once per process"""
        prefix = event_type.split('.')[0]
        stream_name = f"{prefix}-stream"
        if stream_name not in self._streams:
            try:
                await self._js.add_stream(name=stream_name, subjects=[f"{prefix}.>"])
            except Exception as e:
                logger.debug(f"Stream creation note: {e}")
            self._streams.add(stream_name)
        return stream_name

    async def publish_event(self, event: Event) -> bool:
        """Publish an event to NATS JetStream, using event.type as the subject"""
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return False

        try:
            stream_name = await self._ensure_stream(event.type)
            data = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()
            ack = await self._js.publish(event.type, data, stream=stream_name)
            logger.info(f"Published event {event.type} [{event.id}] to stream {stream_name}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def close(self):
        """Drain and close the NATS connection"""
        if self._nc is not None:
            await self._nc.drain()
            self._nc = None
            self._js = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected


# Singleton instance
_event_bus: Optional[NATSEventBus] = None


async def get_event_bus(
    service_name: str,
    config: Optional[InfraConfig] = None,
) -> NATSEventBus:
    """
    Get or create event bus instance.

    Args:
        service_name: Name of the service using the event bus
        config: Optional infrastructure configuration

    Returns:
        Connected NATSEventBus instance
    """
    global _event_bus

    if _event_bus is None:
        bus = NATSEventBus(service_name=service_name, config=config)
        await bus.connect()
        _event_bus = bus

    return _event_bus
