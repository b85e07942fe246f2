# homecook/models.py
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    """Naive UTC; every timestamp in the schema is stored this way."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid4().hex


class Role:
    COOK = "COOK"
    EATER = "EATER"
    USER = "USER"  # legacy alias of EATER
    ADMIN = "ADMIN"

    ALL = (COOK, EATER, USER, ADMIN)
    SELF_SERVICE = (COOK, EATER, USER)


class OrderStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, COMPLETED, CANCELLED)
    TERMINAL = (COMPLETED, CANCELLED)


class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.EATER)
    address = Column(String, nullable=False, default="")
    bio = Column(Text, nullable=True)
    image = Column(String, nullable=True)  # profile picture url
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    menus = relationship("Menu", back_populates="cook")
    food_items = relationship("FoodItem", back_populates="cook")
    orders = relationship("Order", back_populates="eater")
    images = relationship("Image", back_populates="user")
    reviews_written = relationship("Review", foreign_keys="Review.reviewer_id", back_populates="reviewer")
    reviews_received = relationship("Review", foreign_keys="Review.reviewed_id", back_populates="reviewed")


class Menu(Base):
    __tablename__ = "menus"
    id = Column(String(32), primary_key=True, default=new_id)
    cook_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    cook = relationship("User", back_populates="menus")
    food_items = relationship("FoodItem", back_populates="menu")


class FoodItem(Base):
    __tablename__ = "food_items"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_food_items_price_positive"),
        CheckConstraint("servings >= 1", name="ck_food_items_servings_min"),
        CheckConstraint("servings_sold >= 0", name="ck_food_items_sold_non_negative"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    menu_id = Column(String(32), ForeignKey("menus.id"), nullable=False, index=True)
    cook_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    servings = Column(Integer, nullable=False, default=1)
    servings_sold = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    menu = relationship("Menu", back_populates="food_items")
    cook = relationship("User", back_populates="food_items")
    images = relationship("Image", back_populates="food_item", order_by="Image.created_at")
    order_items = relationship("OrderItem", back_populates="food_item")
    reviews = relationship("Review", back_populates="food_item")


class Order(Base):
    __tablename__ = "orders"
    id = Column(String(32), primary_key=True, default=new_id)
    eater_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=OrderStatus.PENDING)  # PENDING | COMPLETED | CANCELLED
    total = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    eater = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id = Column(String(32), primary_key=True, default=new_id)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    food_item_id = Column(String(32), ForeignKey("food_items.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)  # snapshot at order time

    order = relationship("Order", back_populates="items")
    food_item = relationship("FoodItem", back_populates="order_items")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        UniqueConstraint("reviewer_id", "food_item_id", name="uq_reviews_reviewer_food_item"),
        Index(
            "uq_reviews_reviewer_cook",
            "reviewer_id",
            "reviewed_id",
            unique=True,
            sqlite_where=text("food_item_id IS NULL"),
            postgresql_where=text("food_item_id IS NULL"),
        ),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    reviewer_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    reviewed_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    food_item_id = Column(String(32), ForeignKey("food_items.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    reviewer = relationship("User", foreign_keys=[reviewer_id], back_populates="reviews_written")
    reviewed = relationship("User", foreign_keys=[reviewed_id], back_populates="reviews_received")
    food_item = relationship("FoodItem", back_populates="reviews")


class Image(Base):
    __tablename__ = "images"
    id = Column(String(32), primary_key=True, default=new_id)
    url = Column(String, nullable=False)
    food_item_id = Column(String(32), ForeignKey("food_items.id"), nullable=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    food_item = relationship("FoodItem", back_populates="images")
    user = relationship("User", back_populates="images")
