"""
Checkout Microservice API

Responsibilities:
- Shipping rate quotes and free-shipping status
- Tax calculation (US states, Canada, VAT)
- Cart pricing against the product catalog
- Checkout sessions and their promotion into paid orders
- Direct (pay later) orders and order lookup
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.logger import setup_service_logger
from core.nats_client import get_event_bus

from .checkout_repository import CheckoutRepository
from .checkout_service import CheckoutService
from .clients import NotificationClient
from .factory import create_checkout_service
from .models import (
    Address,
    AddressValidation,
    CheckoutQuote,
    CheckoutSessionResponse,
    CompleteCheckoutRequest,
    CompleteCheckoutResponse,
    CreateSessionRequest,
    HealthResponse,
    OrderCalculationRequest,
    OrderStatusResponse,
    OrderSummary,
    PlaceOrderRequest,
    Region,
    ShippingRatesRequest,
    ShippingRatesResponse,
    TaxCalculationRequest,
    TaxRateInfo,
    TaxResult,
)
from .protocols import (
    CheckoutServiceError,
    CheckoutValidationError,
    InsufficientStockError,
    OrderNotFoundError,
    ProductNotFoundError,
    SessionNotFoundError,
)
from .routes_registry import SERVICE_METADATA, get_routes_summary

# Initialize configuration
settings = get_settings()

# Configure logger
logger = setup_service_logger("checkout_service", config=settings.logging)

# Global variables
checkout_service: Optional[CheckoutService] = None
repository: Optional[CheckoutRepository] = None
notification_client: Optional[NotificationClient] = None
event_bus = None
SERVICE_PORT = settings.checkout.service_port


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    global checkout_service, repository, notification_client, event_bus

    try:
        # Initialize NATS JetStream event bus
        try:
            event_bus = await get_event_bus("checkout_service", config=settings.infrastructure)
            logger.info("Event bus initialized successfully")
        except Exception as e:
            logger.warning(f"Failed to initialize event bus: {e}. Continuing without event publishing.")
            event_bus = None

        # Create checkout service using factory
        checkout_service, notification_client = create_checkout_service(
            config=settings, event_bus=event_bus
        )

        # Initialize repository connection
        repository = checkout_service.repository
        await repository.initialize()

        logger.info(f"Checkout service started on port {SERVICE_PORT}")
        yield

    except Exception as e:
        logger.error(f"Failed to initialize checkout service: {e}")
        raise
    finally:
        if event_bus:
            try:
                await event_bus.close()
                logger.info("Checkout event bus closed")
            except Exception as e:
                logger.error(f"Error closing event bus: {e}")

        if notification_client:
            await notification_client.close()

        if repository and repository.db:
            await repository.db.close()
            logger.info("Checkout service database connections closed")


# Create FastAPI app
app = FastAPI(
    title="Checkout Service",
    description="Shipping rates, tax, checkout sessions and order completion",
    version="1.0.0",
    lifespan=lifespan,
)


# ====================
# Dependency Injection
# ====================


async def get_checkout_service() -> CheckoutService:
    """Get checkout service instance"""
    if not checkout_service:
        raise HTTPException(status_code=503, detail="Checkout service not initialized")
    return checkout_service


# ====================
# Health Check and Service Info
# ====================


@app.get("/")
async def root():
    """Service information"""
    return {
        "service": SERVICE_METADATA["service_name"],
        "version": SERVICE_METADATA["version"],
        "capabilities": SERVICE_METADATA["capabilities"],
        "routes": get_routes_summary(),
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check"""
    return HealthResponse(
        status="healthy" if checkout_service else "starting",
        service="checkout_service",
        port=SERVICE_PORT,
        version="1.0.0",
    )


@app.get("/health/detailed", response_model=HealthResponse)
async def detailed_health_check():
    """Health check including database, event bus and notification service"""
    dependencies = {}

    try:
        if repository and repository.db:
            db_health = await repository.health_check()
            dependencies["database"] = "healthy" if db_health.get("healthy") else "unhealthy"
        else:
            dependencies["database"] = "unhealthy"
    except Exception:
        dependencies["database"] = "unhealthy"

    dependencies["event_bus"] = "healthy" if event_bus and event_bus.is_connected else "unavailable"

    if notification_client:
        reachable = await notification_client.health_check()
        dependencies["notification_service"] = "healthy" if reachable else "unreachable"
    else:
        dependencies["notification_service"] = "disabled"

    return HealthResponse(
        status="healthy" if dependencies["database"] == "healthy" else "degraded",
        service="checkout_service",
        port=SERVICE_PORT,
        version="1.0.0",
        dependencies=dependencies,
    )


# ====================
# Pricing API
# ====================


@app.post("/api/v1/checkout/shipping-rates", response_model=ShippingRatesResponse)
async def get_shipping_rates(
    request: ShippingRatesRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Shipping options for a destination, cheapest first"""
    return service.get_shipping_rates(
        country=request.country,
        subtotal=request.subtotal,
        state=request.state,
        weight=request.weight,
    )


@app.post("/api/v1/checkout/calculate-tax", response_model=TaxResult)
async def calculate_tax(
    request: TaxCalculationRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Tax for a destination"""
    return service.calculate_tax(
        subtotal=request.subtotal,
        country=request.country,
        state=request.state,
        postal_code=request.postal_code,
        shipping=request.shipping,
        category=request.category,
    )


@app.post("/api/v1/checkout/calculate", response_model=CheckoutQuote)
async def calculate_order(
    request: OrderCalculationRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Price a full cart"""
    return await service.quote(
        items=request.items,
        country=request.country,
        state=request.state,
        postal_code=request.postal_code,
        shipping_method=request.shipping_method,
    )


@app.get("/api/v1/checkout/tax-rate/{country}", response_model=TaxRateInfo)
async def get_tax_rate(
    country: str,
    state: Optional[str] = None,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Headline tax rate for a destination"""
    return service.get_tax_rate(country, state)


@app.post("/api/v1/checkout/validate-address", response_model=AddressValidation)
async def validate_address(
    address: Address,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Validate a shipping address"""
    missing = [
        name for name, value in (
            ("line1", address.line1),
            ("city", address.city),
            ("postalCode", address.postal_code),
            ("country", address.country),
        )
        if not (value or "").strip()
    ]
    if missing:
        raise CheckoutValidationError(
            "Missing required address fields",
            [f"{name} is required" for name in missing],
        )
    return service.validate_address(address)


@app.get("/api/v1/checkout/countries", response_model=List[Region])
async def get_countries(service: CheckoutService = Depends(get_checkout_service)):
    """Countries we ship to"""
    return service.get_shipping_countries()


@app.get("/api/v1/checkout/states/{country}", response_model=List[Region])
async def get_states(country: str, service: CheckoutService = Depends(get_checkout_service)):
    """States or provinces for a country"""
    return service.get_regions(country)


# ====================
# Checkout Session API
# ====================


@app.post("/api/v1/checkout/create-session", response_model=CheckoutSessionResponse)
async def create_session(
    request: CreateSessionRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Create a checkout session"""
    return await service.create_session(
        items=request.items,
        email=request.email,
        shipping_address=request.shipping_address,
        billing_address=request.billing_address,
        shipping_method=request.shipping_method,
    )


@app.post("/api/v1/checkout/complete", response_model=CompleteCheckoutResponse)
async def complete_checkout(
    request: CompleteCheckoutRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Complete a checkout session"""
    order = await service.complete(
        session_id=request.session_id,
        customer_name=request.customer_name,
        payment_intent_id=request.payment_intent_id,
        phone=request.phone,
    )
    return CompleteCheckoutResponse(
        order_number=order.order_number,
        order=OrderSummary(
            order_number=order.order_number,
            email=order.customer_email,
            total=order.total,
            items=order.items,
        ),
    )


# ====================
# Orders API
# ====================


@app.post(
    "/api/v1/checkout/orders",
    response_model=CompleteCheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def place_order(
    request: PlaceOrderRequest,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Place an order without a checkout session"""
    order = await service.place_order(
        items=request.items,
        email=request.email,
        customer_name=request.customer_name,
        shipping_address=request.shipping_address,
        phone=request.phone,
        shipping_method=request.shipping_method,
    )
    return CompleteCheckoutResponse(
        order_number=order.order_number,
        order=OrderSummary(
            order_number=order.order_number,
            email=order.customer_email,
            total=order.total,
            items=order.items,
        ),
    )


@app.get("/api/v1/checkout/orders/{order_number}", response_model=OrderStatusResponse)
async def get_order(
    order_number: str,
    service: CheckoutService = Depends(get_checkout_service)
):
    """Order status"""
    order = await service.get_order(order_number)
    return OrderStatusResponse(
        order_number=order.order_number,
        status=order.status,
        items=order.items,
        subtotal=order.subtotal,
        shipping=order.shipping_cost,
        tax=order.tax_amount,
        total=order.total,
        created_at=order.created_at,
    )


# ====================
# Error Handling
# ====================


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": errors}
    )


@app.exception_handler(CheckoutValidationError)
async def validation_error_handler(request: Request, exc: CheckoutValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "errors": exc.errors}
    )


@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "product_id": exc.product_id}
    )


@app.exception_handler(InsufficientStockError)
async def insufficient_stock_handler(request: Request, exc: InsufficientStockError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "product_id": exc.product_id,
            "requested": exc.requested,
            "available": exc.available,
        }
    )


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)}
    )


@app.exception_handler(OrderNotFoundError)
async def order_not_found_handler(request: Request, exc: OrderNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)}
    )


@app.exception_handler(CheckoutServiceError)
async def service_error_handler(request: Request, exc: CheckoutServiceError):
    logger.error(f"Checkout error in {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception in {request.url}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error occurred"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microservices.checkout_service.main:app",
        host=settings.default_host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower(),
    )
