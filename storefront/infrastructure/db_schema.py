from sqlalchemy import (
    Table, Column, String, Integer, Boolean, Numeric, Date, DateTime, JSON, MetaData, ForeignKey, Index
)
from sqlalchemy.sql import func

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("display_code", String, unique=True, nullable=False, index=True),
    Column("user_id", String, nullable=False, index=True),
    Column("status", String(32), nullable=False),
    Column("payment_method", String(32), nullable=False),
    Column("payment_status", String(32), nullable=False),
    Column("payment_proof_url", String, nullable=True),
    Column("subtotal", Numeric(12, 2), nullable=False),
    Column("delivery_fee", Numeric(12, 2), nullable=False),
    Column("total", Numeric(12, 2), nullable=False),
    Column("address", String, nullable=False),
    Column("phone", String(32), nullable=False),
    Column("delivery_instructions", String, nullable=True),
    Column("delivery_date", Date, nullable=True),
    Column("delivered_at", DateTime(timezone=True), nullable=True),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    Index("ix_orders_status_created_at", "status", "created_at"),
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_id", String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", String, nullable=False),
    Column("product_name", String, nullable=False),
    Column("unit", String(32), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("total", Numeric(12, 2), nullable=False),
)


notifications_tbl = Table(
    "notifications",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("type", String(32), nullable=False),
    Column("title", String, nullable=False),
    Column("message", String, nullable=False),
    Column("data", JSON, nullable=True),
    Column("read", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)


outbox_events_tbl = Table(
    "outbox_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", String, nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("aggregate_id", String, nullable=False),
    Column("status", String, default="pending"),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


store_settings_tbl = Table(
    "store_settings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("delivery_fee", Numeric(12, 2), nullable=False),
    Column("store_name", String, nullable=False),
    Column("contact_phone", String(32), nullable=False),
    Column("enable_cod", Boolean, nullable=False, default=True),
    Column("enable_qr_payment", Boolean, nullable=False, default=True),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)
