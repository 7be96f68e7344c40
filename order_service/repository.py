"""
repository.py — Transactional Persistence of Orders and Items

This module contains the only stateful logic of the service: reading and
writing the one-to-many relation between an order and its items.

Write operations run in a single transaction each:
    create  → INSERT order → INSERT item (one per item, in order) → COMMIT
    update  → UPDATE order → DELETE items → INSERT new items → COMMIT
    delete  → DELETE items → DELETE order → COMMIT

Read operations use one LEFT JOIN so that orders without items are returned
too. The flat rows are folded back into nested Order objects.

Every operation borrows one pooled connection and returns it on all exit
paths. A database error rolls the transaction back and is re-raised as
PersistenceError. Absence of an order is reported by returning None/False.
"""

import logging
from datetime import timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import PersistenceError
from .models import Order, OrderItem
from .schema import items_table, orders_table

log = logging.getLogger(__name__)

# Joined columns are labelled with logical names; the stored column names are lower-case.
_ORDER_WITH_ITEMS = select(
    orders_table.c.order_id.label("order_id"),
    orders_table.c.value.label("value"),
    orders_table.c.creation_date.label("creation_date"),
    items_table.c.product_id.label("product_id"),
    items_table.c.quantity.label("quantity"),
    items_table.c.price.label("price"),
).select_from(
    orders_table.outerjoin(items_table, orders_table.c.order_id == items_table.c.order_id)
)


def _as_utc(value):
    # SQLite drops the offset on read; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def aggregate_rows(rows: Iterable) -> List[Order]:
    """
    Folds flat order/item join rows into nested Order objects.

    Rows are grouped by order_id into an insertion-ordered dict, so the
    resulting list follows the first appearance of each order in the row
    stream (i.e. the ORDER BY of the query). Rows whose product_id is NULL
    come from the outer join of an order without items and add no item.

    Args:
        rows (Iterable): Rows exposing order_id, value, creation_date,
            product_id, quantity and price attributes.

    Returns:
        List[Order]: One Order per distinct order_id.
    """
    orders: Dict[str, Order] = {}

    for row in rows:
        order = orders.get(row.order_id)
        if order is None:
            order = Order(
                orderId=row.order_id,
                value=row.value,
                creationDate=_as_utc(row.creation_date),
                items=[]
            )
            orders[row.order_id] = order

        if row.product_id is not None:
            order.items.append(
                OrderItem(productId=row.product_id, quantity=row.quantity, price=row.price)
            )

    return list(orders.values())


class OrderRepository:
    """
    Durable storage of orders and their items.

    Args:
        engine (Engine): Engine whose pool provides the connections.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @staticmethod
    def _insert_items(conn: Connection, order_id: str, items: List[OrderItem]):
        insert_item = insert(items_table)
        for item in items:
            conn.execute(
                insert_item.values(
                    order_id=order_id,
                    product_id=item.productId,
                    quantity=item.quantity,
                    price=item.price
                )
            )

    def create(self, order: Order) -> Order:
        """
        Stores a new order together with all of its items.

        Args:
            order (Order): Validated order to store.

        Returns:
            Order: The stored order (the input, unchanged).

        Raises:
            PersistenceError: If any statement fails. Nothing is stored in that case.
        """
        log_prefix = f"[Order: {order.orderId}]"
        try:
            with self.engine.connect() as conn:
                with conn.begin():
                    conn.execute(
                        insert(orders_table).values(
                            order_id=order.orderId,
                            value=order.value,
                            creation_date=order.creationDate
                        )
                    )
                    self._insert_items(conn, order.orderId, order.items)
        except SQLAlchemyError as e:
            log.error(f"{log_prefix} Create failed, transaction rolled back: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create order {order.orderId}: {e}") from e

        log.info(f"{log_prefix} Created with {len(order.items)} item(s).")
        return order

    def get_by_id(self, order_id: str) -> Optional[Order]:
        """
        Loads one order with its items.

        Args:
            order_id (str): Identifier of the order.

        Returns:
            Optional[Order]: The order (items may be empty), or None if no
            order with this identifier exists.

        Raises:
            PersistenceError: If the query fails.
        """
        query = _ORDER_WITH_ITEMS.where(orders_table.c.order_id == order_id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            log.error(f"[Order: {order_id}] Read failed: {e}", exc_info=True)
            raise PersistenceError(f"Failed to read order {order_id}: {e}") from e

        orders = aggregate_rows(rows)
        return orders[0] if orders else None

    def get_all(self) -> List[Order]:
        """
        Loads all orders with their items.

        Returns:
            List[Order]: Orders sorted by creation date (newest first), ties
            broken by order identifier ascending.

        Raises:
            PersistenceError: If the query fails.
        """
        query = _ORDER_WITH_ITEMS.order_by(
            orders_table.c.creation_date.desc(),
            orders_table.c.order_id.asc()
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            log.error(f"Listing orders failed: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list orders: {e}") from e

        return aggregate_rows(rows)

    def update(self, order_id: str, order: Order) -> Optional[Order]:
        """
        Replaces value, creation date and the complete item list of an order.

        Items are never merged: all existing items are deleted and the new
        set is inserted in the same transaction.

        Args:
            order_id (str): Identifier of the order to update. Takes
                precedence over order.orderId.
            order (Order): New order data.

        Returns:
            Optional[Order]: The updated order, or None if no order with
            this identifier exists (nothing is changed in that case).

        Raises:
            PersistenceError: If any statement fails. The previous state is kept.
        """
        log_prefix = f"[Order: {order_id}]"
        try:
            with self.engine.connect() as conn:
                with conn.begin() as transaction:
                    result = conn.execute(
                        update(orders_table)
                        .where(orders_table.c.order_id == order_id)
                        .values(value=order.value, creation_date=order.creationDate)
                    )
                    if result.rowcount == 0:
                        transaction.rollback()
                        log.info(f"{log_prefix} Update skipped, order does not exist.")
                        return None

                    conn.execute(delete(items_table).where(items_table.c.order_id == order_id))
                    self._insert_items(conn, order_id, order.items)
        except SQLAlchemyError as e:
            log.error(f"{log_prefix} Update failed, transaction rolled back: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update order {order_id}: {e}") from e

        log.info(f"{log_prefix} Updated, items replaced with {len(order.items)} item(s).")
        return order.model_copy(update={"orderId": order_id})

    def delete(self, order_id: str) -> bool:
        """
        Deletes an order and all of its items.

        Args:
            order_id (str): Identifier of the order.

        Returns:
            bool: True if an order row was deleted, False if it did not exist.

        Raises:
            PersistenceError: If any statement fails. Nothing is deleted in that case.
        """
        log_prefix = f"[Order: {order_id}]"
        try:
            with self.engine.connect() as conn:
                with conn.begin():
                    conn.execute(delete(items_table).where(items_table.c.order_id == order_id))
                    result = conn.execute(delete(orders_table).where(orders_table.c.order_id == order_id))
                    deleted = result.rowcount > 0
        except SQLAlchemyError as e:
            log.error(f"{log_prefix} Delete failed, transaction rolled back: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete order {order_id}: {e}") from e

        if deleted:
            log.info(f"{log_prefix} Deleted.")
        return deleted
