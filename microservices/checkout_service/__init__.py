"""
Checkout Service

Shipping rates, tax, checkout sessions and order completion.
"""
