"""
Checkout Repository

Data access layer for products, checkout sessions and orders using asyncpg.

Item lists and addresses are stored as JSONB; they are converted to and
from the pydantic models here and nowhere else.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg

from core.postgres_client import PostgresClientWrapper, get_postgres_client
from .models import (
    Address,
    CheckoutSession,
    Order,
    OrderStatus,
    PricedLine,
    Product,
    ProductId,
)
from .protocols import InsufficientStockError, SessionNotFoundError

logger = logging.getLogger(__name__)


def _dump_items(items: List[PricedLine]) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items])


def _dump_address(address: Optional[Address]) -> Optional[str]:
    if address is None:
        return None
    return json.dumps(address.model_dump(mode="json"))


def _load(value: Any) -> Any:
    # asyncpg returns json/jsonb as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value


class CheckoutRepository:
    """
    Repository for checkout data operations

    Handles all database operations for the checkout pipeline.
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None, schema: str = "commerce"):
        """Initialize Checkout Repository with an asyncpg-backed client"""
        self.db = db
        self.schema = schema
        self.products_table = f"{schema}.products"
        self.sessions_table = f"{schema}.checkout_sessions"
        self.orders_table = f"{schema}.orders"

        logger.info("CheckoutRepository initialized")

    async def initialize(self):
        """Bind the shared PostgreSQL client"""
        if self.db is None:
            self.db = await get_postgres_client("checkout_service")
        await self.db.connect()

    # ====================
    # Products
    # ====================

    async def get_products(self, product_ids: List[ProductId]) -> Dict[ProductId, Product]:
        """Get products by ID"""
        if not product_ids:
            return {}

        rows = await self.db.query(
            f"""
            SELECT id, slug, title, price, category, weight,
                   inventory_count, is_digital, is_active
            FROM {self.products_table}
            WHERE id = ANY($1::int[])
            """,
            [list(product_ids)],
        )
        return {row["id"]: Product.model_validate(row) for row in rows}

    async def _decrement_stock(
        self,
        conn: asyncpg.Connection,
        items: List[PricedLine],
        guard_stock: bool,
    ) -> None:
        """
        Relative decrement per physical product, in product-id order.

        With guard_stock the update only applies while enough stock remains;
        a miss raises InsufficientStockError and the caller's transaction
        rolls back.
        """
        quantities: Dict[ProductId, int] = {}
        titles: Dict[ProductId, str] = {}
        for item in items:
            if item.is_digital:
                continue
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
            titles[item.product_id] = item.title

        for product_id in sorted(quantities):
            quantity = quantities[product_id]
            if guard_stock:
                remaining = await conn.fetchval(
                    f"""
                    UPDATE {self.products_table}
                    SET inventory_count = inventory_count - $2, updated_at = NOW()
                    WHERE id = $1 AND inventory_count >= $2
                    RETURNING inventory_count
                    """,
                    product_id, quantity,
                )
                if remaining is None:
                    available = await conn.fetchval(
                        f"SELECT inventory_count FROM {self.products_table} WHERE id = $1",
                        product_id,
                    )
                    raise InsufficientStockError(
                        product_id=product_id,
                        title=titles[product_id],
                        requested=quantity,
                        available=available or 0,
                    )
            else:
                await conn.execute(
                    f"""
                    UPDATE {self.products_table}
                    SET inventory_count = inventory_count - $2, updated_at = NOW()
                    WHERE id = $1
                    """,
                    product_id, quantity,
                )

    # ====================
    # Sessions
    # ====================

    async def create_session(self, session: CheckoutSession) -> CheckoutSession:
        """Persist a checkout session"""
        await self.db.execute(
            f"""
            INSERT INTO {self.sessions_table} (
                session_id, email, items, shipping_address, billing_address,
                subtotal, shipping_cost, shipping_method, tax_amount, total,
                expires_at, created_at
            ) VALUES ($1, $2, $3::jsonb, $4::jsonb, $5::jsonb, $6, $7, $8, $9, $10, $11, $12)
            """,
            [
                session.session_id,
                session.email,
                _dump_items(session.items),
                _dump_address(session.shipping_address),
                _dump_address(session.billing_address),
                session.subtotal,
                session.shipping_cost,
                session.shipping_method,
                session.tax_amount,
                session.total,
                session.expires_at,
                session.created_at,
            ],
        )
        return session

    async def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        """Get session by ID"""
        row = await self.db.query_row(
            f"SELECT * FROM {self.sessions_table} WHERE session_id = $1",
            [session_id],
        )
        if row is None:
            return None
        return self._row_to_session(row)

    async def complete_checkout(
        self,
        session_id: str,
        order: Order,
        now: datetime,
        guard_stock: bool = True,
    ) -> Order:
        """Consume session, insert order and decrement stock in one transaction"""
        async with self.db.transaction() as conn:
            consumed = await conn.fetchval(
                f"""
                DELETE FROM {self.sessions_table}
                WHERE session_id = $1 AND expires_at > $2
                RETURNING session_id
                """,
                session_id, now,
            )
            if consumed is None:
                raise SessionNotFoundError(f"Checkout session {session_id} not found or expired")

            await self._insert_order(conn, order)
            await self._decrement_stock(conn, order.items, guard_stock)

        return order

    # ====================
    # Orders
    # ====================

    async def create_order(self, order: Order, guard_stock: bool = True) -> Order:
        """Insert order and decrement stock in one transaction"""
        async with self.db.transaction() as conn:
            await self._insert_order(conn, order)
            await self._decrement_stock(conn, order.items, guard_stock)
        return order

    async def _insert_order(self, conn: asyncpg.Connection, order: Order) -> None:
        await conn.execute(
            f"""
            INSERT INTO {self.orders_table} (
                order_number, customer_email, customer_name, customer_phone,
                shipping_address, billing_address, items,
                subtotal, shipping, shipping_method, tax, total,
                status, payment_intent_id, created_at, updated_at
            ) VALUES (
                $1, $2, $3, $4, $5::jsonb, $6::jsonb, $7::jsonb,
                $8, $9, $10, $11, $12, $13, $14, $15, $16
            )
            """,
            order.order_number,
            order.customer_email,
            order.customer_name,
            order.customer_phone,
            _dump_address(order.shipping_address),
            _dump_address(order.billing_address),
            _dump_items(order.items),
            order.subtotal,
            order.shipping_cost,
            order.shipping_method,
            order.tax_amount,
            order.total,
            order.status.value,
            order.payment_intent_id,
            order.created_at,
            order.updated_at or order.created_at,
        )

    async def get_order(self, order_number: str) -> Optional[Order]:
        """Get order by order number"""
        row = await self.db.query_row(
            f"SELECT * FROM {self.orders_table} WHERE order_number = $1",
            [order_number],
        )
        if row is None:
            return None
        return self._row_to_order(row)

    # ====================
    # Row mapping
    # ====================

    @staticmethod
    def _row_to_session(row: Dict[str, Any]) -> CheckoutSession:
        return CheckoutSession(
            session_id=row["session_id"],
            email=row["email"],
            items=[PricedLine.model_validate(item) for item in _load(row["items"])],
            shipping_address=Address.model_validate(_load(row["shipping_address"])),
            billing_address=Address.model_validate(
                _load(row["billing_address"]) or _load(row["shipping_address"])
            ),
            subtotal=row["subtotal"],
            shipping_cost=row["shipping_cost"],
            shipping_method=row["shipping_method"],
            tax_amount=row["tax_amount"],
            total=row["total"],
            expires_at=row["expires_at"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_order(row: Dict[str, Any]) -> Order:
        billing = _load(row.get("billing_address"))
        return Order(
            order_number=row["order_number"],
            customer_email=row["customer_email"],
            customer_name=row.get("customer_name"),
            customer_phone=row.get("customer_phone"),
            shipping_address=Address.model_validate(_load(row["shipping_address"])),
            billing_address=Address.model_validate(billing) if billing else None,
            items=[PricedLine.model_validate(item) for item in _load(row["items"])],
            subtotal=row["subtotal"],
            shipping_cost=row["shipping"],
            shipping_method=row["shipping_method"],
            tax_amount=row["tax"],
            total=row["total"],
            status=OrderStatus(row["status"]),
            payment_intent_id=row.get("payment_intent_id"),
            tracking_number=row.get("tracking_number"),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    async def health_check(self) -> Dict[str, Any]:
        return await self.db.health_check()
