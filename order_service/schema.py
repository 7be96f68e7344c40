"""
schema.py — Relational Schema of the Order Store

Two tables, as deployed in production:

    "Order" (orderid PK, value, creationdate)
    "Items" (orderid FK -> "Order".orderid, productid, quantity, price)

Column names are lower-case in the database. Each Column carries a snake_case
key, which is the name Python code uses (orders_table.c.order_id, ...).
Items have no primary key; duplicate item rows are allowed.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, MetaData, Numeric, String, Table
from sqlalchemy.engine import Engine

metadata = MetaData()

orders_table = Table(
    "Order",
    metadata,
    Column("orderid", String, key="order_id", primary_key=True),
    Column("value", Numeric(asdecimal=False), nullable=False),
    Column("creationdate", DateTime(timezone=True), key="creation_date", nullable=False),
)

items_table = Table(
    "Items",
    metadata,
    Column("orderid", String, ForeignKey("Order.orderid", link_to_name=True), key="order_id", nullable=False, index=True),
    Column("productid", Integer, key="product_id", nullable=False),
    Column("quantity", Numeric(asdecimal=False), nullable=False),
    Column("price", Numeric(asdecimal=False), nullable=False),
)


def create_schema(engine: Engine):
    """Creates the order tables if they do not exist yet."""
    metadata.create_all(engine)
