"""
Root conftest.py

Test Layers:
    - component/  : CheckoutService, repository and HTTP routes over in-memory fakes
    - unit/       : Rate tables, engines, models, notifications and config
    - contracts/  : Checkout data contracts and request factories

Nothing here talks to PostgreSQL or NATS; tests that would need them carry
the ``requires_db`` marker and are skipped when SKIP_DB_TESTS is set.
"""
import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Checkout tuning from the shell would change expected prices
for _name in (
    "CHECKOUT_NEXUS_STATES",
    "CHECKOUT_HANDLING_FEE",
    "CHECKOUT_FREE_SHIPPING_ENABLED",
    "CHECKOUT_SESSION_TTL_MINUTES",
    "CHECKOUT_RECHECK_STOCK_ON_COMPLETE",
):
    os.environ.pop(_name, None)


def pytest_configure(config):
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "requires_db: Needs a running PostgreSQL")


def pytest_collection_modifyitems(config, items):
    if not os.getenv("SKIP_DB_TESTS"):
        return

    skip_db = pytest.mark.skip(reason="SKIP_DB_TESTS is set")
    for item in items:
        if "requires_db" in item.keywords:
            item.add_marker(skip_db)
