"""Database models for the point-of-sale schema.

These models describe the tables backing menus, orders and the daily
statistics rollup. They are kept isolated from any application wiring so
that they can be used in tests or migrations independently."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Return the current UTC time; used for column defaults."""

    return datetime.now(timezone.utc)


class User(Base):
    """Staff accounts."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="staff")


class Category(Base):
    """Flat menu categories ordered by ``display_order``."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class MenuItem(Base):
    """Sellable items. Prices are integer minor currency units."""

    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)
    meal_price = Column(Integer, nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    image = Column(String, nullable=True)
    has_flavor_options = Column(Boolean, nullable=False, default=False)
    has_meal_option = Column(Boolean, nullable=False, default=False)
    is_spicy_option = Column(Boolean, nullable=False, default=False)
    has_toppings_option = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Order(Base):
    """Customer orders. ``order_number`` is the human-facing identifier."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String, unique=True, nullable=False)
    status = Column(String, nullable=False, default="new", index=True)
    total_amount = Column(Integer, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    items = relationship(
        "OrderItem",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItem(Base):
    """Line items; name and price are snapshotted at order time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    customizations = Column(JSON, nullable=True)


class DailyStats(Base):
    """Per-item sales totals recorded before old orders are pruned."""

    __tablename__ = "daily_stats"
    __table_args__ = (UniqueConstraint("date", "menu_item_id"),)

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    menu_item_id = Column(Integer, nullable=False)
    item_name = Column(String, nullable=False)
    total_ordered = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
