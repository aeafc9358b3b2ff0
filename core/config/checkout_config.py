#!/usr/bin/env python3
"""Checkout pricing configuration

Options for the shipping and tax engines and the checkout session lifecycle.
"""
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Tuple

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _decimal(val: str, default: Decimal) -> Decimal:
    try:
        return Decimal(val) if val else default
    except InvalidOperation:
        return default

def _codes(val: str) -> Tuple[str, ...]:
    return tuple(code.strip().upper() for code in val.split(",") if code.strip())


@dataclass
class CheckoutConfig:
    """Checkout pricing options"""

    # Tax: US states with nexus. Empty means tax is collected everywhere.
    nexus_states: Tuple[str, ...] = field(default_factory=tuple)

    # Shipping
    handling_fee: Decimal = Decimal("0")
    free_shipping_enabled: bool = True

    # Session lifecycle
    session_ttl_minutes: int = 60
    recheck_stock_on_complete: bool = True

    service_port: int = 8231

    @classmethod
    def from_env(cls) -> 'CheckoutConfig':
        """Load checkout config from environment variables"""
        return cls(
            nexus_states=_codes(os.getenv("CHECKOUT_NEXUS_STATES", "")),
            handling_fee=_decimal(os.getenv("CHECKOUT_HANDLING_FEE", "0"), Decimal("0")),
            free_shipping_enabled=_bool(os.getenv("CHECKOUT_FREE_SHIPPING_ENABLED", "true")),
            session_ttl_minutes=_int(os.getenv("CHECKOUT_SESSION_TTL_MINUTES", "60"), 60),
            recheck_stock_on_complete=_bool(os.getenv("CHECKOUT_RECHECK_STOCK_ON_COMPLETE", "true")),
            service_port=_int(os.getenv("CHECKOUT_SERVICE_PORT", "8231"), 8231),
        )
