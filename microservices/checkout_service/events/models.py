"""
Checkout Service Event Models

Pydantic models for events published by checkout service
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutSessionCreatedEvent(BaseModel):
    """Event published when a checkout session is created"""
    session_id: str
    email: str
    item_count: int
    total: float
    currency: str = "USD"
    expires_at: datetime
    timestamp: datetime = Field(default_factory=_utcnow)


class OrderCreatedEvent(BaseModel):
    """Event published when a direct (pay later) order is placed"""
    order_number: str
    customer_email: str
    status: str
    total: float
    currency: str = "USD"
    items: List[Dict[str, Any]] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class OrderCompletedEvent(BaseModel):
    """Event published when a checkout session becomes a paid order"""
    order_number: str
    session_id: str
    customer_email: str
    total: float
    currency: str = "USD"
    payment_intent_id: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class StockDecrementedEvent(BaseModel):
    """Event published after inventory is reduced for an order"""
    order_number: str
    decrements: List[Dict[str, Any]]
    timestamp: datetime = Field(default_factory=_utcnow)
