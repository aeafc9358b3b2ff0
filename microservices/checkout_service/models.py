"""
Checkout Service Data Models

Pydantic models for shipping quotes, tax results, checkout sessions and orders.

Money is carried as Decimal end to end and rendered as a JSON number.
HTTP payloads use camelCase field names; Python code uses snake_case.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer
from pydantic.alias_generators import to_camel

CENT = Decimal("0.01")


def round_currency(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round half-up to cents. Floats are converted through str to keep their printed value."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


_AS_NUMBER = PlainSerializer(float, return_type=float, when_used="json")

Money = Annotated[Decimal, _AS_NUMBER]
Rate = Annotated[Decimal, _AS_NUMBER]
Weight = Annotated[Decimal, _AS_NUMBER]

ProductId = int
ZoneId = Union[int, str]


class CheckoutModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Enums
# ============================================================================

class ShippingMethod(str, Enum):
    """Shipping method enumeration"""
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"  # US only


class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# ============================================================================
# Addresses and catalog
# ============================================================================

class Address(CheckoutModel):
    """
    Postal address.

    Fields are deliberately lenient: completeness is reported by
    ShippingRateEngine.validate_address so every problem surfaces at once.
    """
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    state: Optional[str] = None
    postal_code: str = ""
    country: str = ""


class Product(CheckoutModel):
    """Catalog record as seen by checkout"""
    id: ProductId
    slug: Optional[str] = None
    title: str
    price: Money
    category: Optional[str] = "apparel"
    weight: Optional[Decimal] = None
    inventory_count: int = 0
    is_digital: bool = False
    is_active: bool = True


class CartLine(CheckoutModel):
    """A requested product and quantity"""
    product_id: ProductId
    quantity: int = Field(..., ge=1, description="Units requested")


class PricedLine(CheckoutModel):
    """A cart line resolved against the catalog"""
    product_id: ProductId
    title: str
    unit_price: Money
    quantity: int
    category: str = "apparel"
    is_digital: bool = False
    weight: Weight = Decimal("0.5")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_weight(self) -> Decimal:
        return self.weight * self.quantity


# ============================================================================
# Shipping
# ============================================================================

class BusinessDays(CheckoutModel):
    min: int
    max: int


class DeliveryEstimate(CheckoutModel):
    """Delivery window counted in business days (Saturday and Sunday skipped)"""
    min_date: datetime
    max_date: datetime
    formatted: str
    business_days: BusinessDays


class FreeShippingStatus(CheckoutModel):
    """Whether a subtotal reaches the free-shipping threshold"""
    eligible: bool
    threshold: Optional[Money] = None
    method: Optional[str] = None
    amount_until_free: Money = Decimal("0")
    message: str = ""


class ShippingQuote(CheckoutModel):
    """Priced shipping option for a destination"""
    method: str
    method_name: str
    description: str
    zone: ZoneId
    base_rate: Money
    weight_surcharge: Money
    handling_fee: Money = Decimal("0")
    total: Money
    free_shipping_applied: bool = False
    delivery_estimate: DeliveryEstimate
    free_shipping: Optional[FreeShippingStatus] = None


class AddressValidation(CheckoutModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class Region(CheckoutModel):
    code: str
    name: str


# ============================================================================
# Tax
# ============================================================================

class TaxBreakdownLine(CheckoutModel):
    name: str
    rate: Rate
    amount: Money


class TaxRateInfo(CheckoutModel):
    """Headline rate for a destination, for display before a cart exists"""
    country: str
    state: Optional[str] = None
    rate: Rate
    tax_free: bool


class TaxResult(CheckoutModel):
    """Tax computed for a destination"""
    subtotal: Money
    shipping: Money
    taxable_amount: Money
    tax_rate: Rate
    tax_amount: Money
    total: Money
    breakdown: List[TaxBreakdownLine] = Field(default_factory=list)
    jurisdiction: Optional[str] = None


# ============================================================================
# Checkout pipeline
# ============================================================================

class ShippingSummary(CheckoutModel):
    method: str
    method_name: str
    cost: Money
    delivery_estimate: DeliveryEstimate
    free_shipping: Optional[FreeShippingStatus] = None


class TaxSummary(CheckoutModel):
    rate: Rate
    amount: Money
    breakdown: List[TaxBreakdownLine] = Field(default_factory=list)
    jurisdiction: Optional[str] = None


class CheckoutQuote(CheckoutModel):
    """Full pricing of a cart for a destination"""
    items: List[PricedLine]
    subtotal: Money
    shipping: ShippingSummary
    tax: TaxSummary
    total: Money
    currency: str = "USD"


class CheckoutSession(CheckoutModel):
    """Persisted, priced, time-limited checkout"""
    session_id: str
    email: str
    items: List[PricedLine]
    shipping_address: Address
    billing_address: Address
    subtotal: Money
    shipping_cost: Money
    shipping_method: str
    tax_amount: Money
    total: Money
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class Order(CheckoutModel):
    """Placed order"""
    order_number: str
    customer_email: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Address
    billing_address: Optional[Address] = None
    items: List[PricedLine]
    subtotal: Money
    shipping_cost: Money
    shipping_method: str
    tax_amount: Money
    total: Money
    status: OrderStatus = OrderStatus.PENDING
    payment_intent_id: Optional[str] = None
    tracking_number: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# ============================================================================
# Request Models
# ============================================================================

class ShippingRatesRequest(CheckoutModel):
    """Shipping rates request"""
    country: str = Field(..., min_length=2, description="ISO-3166 alpha-2 destination country")
    state: Optional[str] = None
    postal_code: Optional[str] = None
    subtotal: Decimal = Field(..., ge=0, description="Cart subtotal in USD")
    weight: Decimal = Field(default=Decimal("1"), ge=0, description="Total weight in pounds")


class TaxCalculationRequest(CheckoutModel):
    """Tax calculation request"""
    subtotal: Decimal = Field(..., ge=0)
    country: str = Field(..., min_length=2)
    state: Optional[str] = None
    postal_code: Optional[str] = None
    shipping: Decimal = Field(default=Decimal("0"), ge=0)
    category: str = "apparel"


class OrderCalculationRequest(CheckoutModel):
    """Full cart pricing request"""
    items: List[CartLine] = Field(..., min_length=1)
    country: str = Field(..., min_length=2)
    state: Optional[str] = None
    postal_code: Optional[str] = None
    shipping_method: ShippingMethod = ShippingMethod.STANDARD


class CreateSessionRequest(CheckoutModel):
    """Create checkout session request"""
    items: List[CartLine] = Field(..., min_length=1)
    email: EmailStr
    shipping_address: Address
    billing_address: Optional[Address] = None
    shipping_method: ShippingMethod = ShippingMethod.STANDARD


class CompleteCheckoutRequest(CheckoutModel):
    """Complete checkout request"""
    session_id: str = Field(..., min_length=1)
    payment_intent_id: Optional[str] = None
    customer_name: str = Field(..., min_length=1)
    phone: Optional[str] = None


class PlaceOrderRequest(CheckoutModel):
    """Direct order request (pay later)"""
    items: List[CartLine] = Field(..., min_length=1)
    email: EmailStr
    customer_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    shipping_address: Address
    shipping_method: ShippingMethod = ShippingMethod.STANDARD


# ============================================================================
# Response Models
# ============================================================================

class ShippingRatesResponse(CheckoutModel):
    rates: List[ShippingQuote]
    free_shipping: FreeShippingStatus


class CheckoutSessionResponse(CheckoutModel):
    session_id: str
    items: List[PricedLine]
    shipping_address: Address
    billing_address: Address
    shipping: ShippingSummary
    tax: TaxSummary
    subtotal: Money
    total: Money
    currency: str = "USD"
    expires_at: datetime


class OrderSummary(CheckoutModel):
    order_number: str
    email: str
    total: Money
    items: List[PricedLine]


class CompleteCheckoutResponse(CheckoutModel):
    success: bool = True
    order_number: str
    message: str = "Order placed successfully!"
    order: OrderSummary


class OrderStatusResponse(CheckoutModel):
    order_number: str
    status: OrderStatus
    items: List[PricedLine]
    subtotal: Money
    shipping: Money
    tax: Money
    total: Money
    created_at: datetime


class HealthResponse(BaseModel):
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, Any] = Field(default_factory=dict)
