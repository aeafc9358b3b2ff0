"""
Checkout Service - Data Contract

Pydantic schemas, test data factory, and request builders for checkout_service.
Zero hardcoded data - all test data generated through factory methods.

Wire format is camelCase; money is a JSON number.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
import secrets


# ============================================================================
# Response Contracts
# ============================================================================

class PricedLineContract(BaseModel):
    model_config = ConfigDict(extra="allow")

    productId: int
    title: str
    unitPrice: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    isDigital: bool


class CheckoutSessionResponseContract(BaseModel):
    """Contract for a created checkout session"""
    model_config = ConfigDict(extra="allow")

    sessionId: str = Field(..., pattern=r"^cs_")
    items: List[PricedLineContract]
    subtotal: float
    total: float
    currency: str = "USD"
    expiresAt: datetime
    shipping: Dict[str, Any]
    tax: Dict[str, Any]


class OrderSummaryContract(BaseModel):
    model_config = ConfigDict(extra="allow")

    orderNumber: str = Field(..., pattern=r"^WXC-[0-9A-Z]{8}$")
    email: str
    total: float
    items: List[PricedLineContract]


class CompleteCheckoutResponseContract(BaseModel):
    """Contract for a completed checkout"""
    success: bool
    orderNumber: str = Field(..., pattern=r"^WXC-[0-9A-Z]{8}$")
    message: str
    order: OrderSummaryContract


class ErrorResponseContract(BaseModel):
    """Contract for error responses"""
    model_config = ConfigDict(extra="allow")

    detail: str
    errors: Optional[List[str]] = None


# ============================================================================
# Test Data Factory
# ============================================================================

class CheckoutTestDataFactory:
    """Test data factory for checkout_service - zero hardcoded data"""

    _product_counter = 1000

    # ========================================
    # Valid ID Generators
    # ========================================

    @classmethod
    def make_product_id(cls) -> int:
        """Generate a fresh product ID"""
        cls._product_counter += 1
        return cls._product_counter

    @staticmethod
    def make_email() -> str:
        return f"buyer_{secrets.token_hex(4)}@example.com"

    @staticmethod
    def make_customer_name() -> str:
        return f"Customer {secrets.token_hex(3)}"

    @staticmethod
    def make_payment_intent_id() -> str:
        return f"pi_{secrets.token_hex(12)}"

    # ========================================
    # Catalog
    # ========================================

    @classmethod
    def make_product(
        cls,
        price: Decimal = Decimal("35.00"),
        weight: Optional[Decimal] = Decimal("0.5"),
        inventory_count: int = 10,
        is_digital: bool = False,
        is_active: bool = True,
        category: str = "apparel",
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Product record fields as the catalog stores them"""
        product_id = cls.make_product_id()
        return {
            "id": product_id,
            "slug": f"product-{product_id}",
            "title": title or f"Product {product_id}",
            "price": price,
            "category": category,
            "weight": weight,
            "inventory_count": inventory_count,
            "is_digital": is_digital,
            "is_active": is_active,
        }

    # ========================================
    # Addresses
    # ========================================

    @staticmethod
    def make_us_address(state: str = "CA", postal_code: str = "90012") -> Dict[str, Any]:
        return {
            "line1": f"{secrets.randbelow(9000) + 100} Sunset Blvd",
            "city": "Los Angeles",
            "state": state,
            "postalCode": postal_code,
            "country": "US",
        }

    # ========================================
    # Requests
    # ========================================

    @staticmethod
    def make_cart_line(product_id: int, quantity: int = 1) -> Dict[str, Any]:
        return {"productId": product_id, "quantity": quantity}

    @classmethod
    def make_complete_request(cls, session_id: str) -> Dict[str, Any]:
        return {
            "sessionId": session_id,
            "paymentIntentId": cls.make_payment_intent_id(),
            "customerName": cls.make_customer_name(),
        }

    # ========================================
    # Invalid Data
    # ========================================

    @staticmethod
    def make_invalid_us_address() -> Dict[str, Any]:
        """US address without state and with a malformed ZIP"""
        return {
            "line1": "1 Main St",
            "city": "Springfield",
            "postalCode": "ABCDE",
            "country": "US",
        }

    @staticmethod
    def make_empty_address() -> Dict[str, Any]:
        return {"line1": "", "city": "", "postalCode": "", "country": ""}


# ============================================================================
# Request Builders
# ============================================================================

class CreateSessionRequestBuilder:
    """Fluent builder for checkout session requests"""

    def __init__(self):
        self._items: List[Dict[str, Any]] = []
        self._email = CheckoutTestDataFactory.make_email()
        self._address = CheckoutTestDataFactory.make_us_address()

    def with_item(self, product_id: int, quantity: int = 1) -> "CreateSessionRequestBuilder":
        self._items.append(CheckoutTestDataFactory.make_cart_line(product_id, quantity))
        return self

    def with_email(self, email: str) -> "CreateSessionRequestBuilder":
        self._email = email
        return self

    def build(self) -> Dict[str, Any]:
        return {
            "items": list(self._items),
            "email": self._email,
            "shippingAddress": self._address,
            "shippingMethod": "standard",
        }
