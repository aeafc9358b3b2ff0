"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (NATS).
Service-specific mocks live in tests/component/{service}/conftest.py
"""

from .nats_mock import MockEventBus

__all__ = [
    'MockEventBus',
]
