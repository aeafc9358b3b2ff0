#!/usr/bin/env python3
"""
Core Module for the Commerce Microservices

Shared infrastructure for all services:
    - config/: dataclass configuration loaded from the environment
    - logger.py: service logger setup
    - postgres_client.py: asyncpg pool wrapper with scoped transactions
    - nats_client.py: NATS JetStream event bus

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("checkout_service")
"""

__version__ = "1.0.0"
