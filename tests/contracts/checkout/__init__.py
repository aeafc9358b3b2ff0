"""
Checkout Service - Contracts Package

This package contains the contract definitions for checkout_service:
- data_contract.py: Pydantic response schemas, test data factory, request builder
"""

from .data_contract import (
    # Response Contracts
    CheckoutSessionResponseContract,
    CompleteCheckoutResponseContract,
    ErrorResponseContract,
    # Factory
    CheckoutTestDataFactory,
    # Builders
    CreateSessionRequestBuilder,
)

__all__ = [
    # Response Contracts
    "CheckoutSessionResponseContract",
    "CompleteCheckoutResponseContract",
    "ErrorResponseContract",
    # Factory
    "CheckoutTestDataFactory",
    # Builders
    "CreateSessionRequestBuilder",
]
