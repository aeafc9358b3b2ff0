"""
Checkout Service Routes Registry
Defines all API routes exposed by the checkout service
"""

from typing import List, Dict, Any

SERVICE_ROUTES = [
    {
        "path": "/",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service information"
    },
    {
        "path": "/health",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service health check"
    },
    {
        "path": "/health/detailed",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Detailed health check"
    },
    # Pricing
    {
        "path": "/api/v1/checkout/shipping-rates",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Shipping rate quotes for a destination"
    },
    {
        "path": "/api/v1/checkout/calculate-tax",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Tax for a destination"
    },
    {
        "path": "/api/v1/checkout/calculate",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Price a full cart"
    },
    {
        "path": "/api/v1/checkout/tax-rate/{country}",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Headline tax rate for a destination"
    },
    {
        "path": "/api/v1/checkout/validate-address",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Validate a shipping address"
    },
    {
        "path": "/api/v1/checkout/countries",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Countries we ship to"
    },
    {
        "path": "/api/v1/checkout/states/{country}",
        "methods": ["GET"],
        "auth_required": False,
        "description": "States or provinces for a country"
    },
    # Session lifecycle
    {
        "path": "/api/v1/checkout/create-session",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Create a checkout session"
    },
    {
        "path": "/api/v1/checkout/complete",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Complete a checkout session"
    },
    # Orders
    {
        "path": "/api/v1/checkout/orders",
        "methods": ["POST"],
        "auth_required": False,
        "description": "Place an order without a session"
    },
    {
        "path": "/api/v1/checkout/orders/{order_number}",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Order status"
    },
]


def get_routes_summary() -> Dict[str, Any]:
    """Compact route metadata for the service info endpoint"""
    health_routes: List[str] = []
    pricing_routes: List[str] = []
    session_routes: List[str] = []
    order_routes: List[str] = []

    for route in SERVICE_ROUTES:
        path = route["path"]
        if path == "/" or "health" in path:
            health_routes.append(path)
        elif "/orders" in path:
            order_routes.append(path)
        elif path.endswith("/create-session") or path.endswith("/complete"):
            session_routes.append(path)
        else:
            pricing_routes.append(path)

    return {
        "route_count": len(SERVICE_ROUTES),
        "base_path": "/api/v1/checkout",
        "health": health_routes,
        "pricing": len(pricing_routes),
        "sessions": len(session_routes),
        "orders": len(order_routes),
        "methods": "GET,POST",
        "public_count": sum(1 for r in SERVICE_ROUTES if not r["auth_required"]),
    }


SERVICE_METADATA = {
    "service_name": "checkout_service",
    "version": "1.0.0",
    "tags": ["v1", "commerce", "checkout", "pricing"],
    "capabilities": [
        "shipping_rates",
        "tax_calculation",
        "cart_pricing",
        "address_validation",
        "checkout_sessions",
        "order_completion",
        "direct_orders"
    ]
}
