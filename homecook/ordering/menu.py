# homecook/ordering/menu.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..auth import Principal
from ..db import transaction
from ..errors import Conflict, InvalidInput, NotFound
from ..models import FoodItem, Image, Menu, OrderItem, Review, Role, User, utcnow
from ..policy import Action, authorize
from .availability import naive_utc
from .reviews import RatingSummary, cook_rating, cook_reviews

logger = logging.getLogger(__name__)

DEFAULT_MENU_NAME = "My Menu"
DEFAULT_MENU_DESCRIPTION = "A collection of my homemade meals"

SOLD_OUT = "This meal is sold out; raise servings before making it available"


@dataclass
class CookProfile:
    cook: User
    food_items: List[FoodItem]
    reviews: List[Review]
    rating: RatingSummary


def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and naive_utc(end) < naive_utc(start):
        raise InvalidInput("End date must not be before start date")


def get_or_create_menu(db: Session, cook_id: str) -> Menu:
    """At most one menu per cook is ever created; it appears with the first meal."""
    menu = db.query(Menu).filter(Menu.cook_id == cook_id).order_by(Menu.created_at).first()
    if menu:
        return menu

    logger.info("Creating menu for cook %s", cook_id)
    menu = Menu(cook_id=cook_id, name=DEFAULT_MENU_NAME, description=DEFAULT_MENU_DESCRIPTION)
    db.add(menu)
    db.flush()
    return menu


def get_food_item(db: Session, food_item_id: str) -> FoodItem:
    item = (
        db.query(FoodItem)
        .options(selectinload(FoodItem.images))
        .filter(FoodItem.id == food_item_id)
        .first()
    )
    if not item:
        raise NotFound("Meal not found")
    return item


def _owned_item(db: Session, principal: Principal, food_item_id: str) -> FoodItem:
    item = get_food_item(db, food_item_id)
    authorize(principal, Action.MANAGE_FOOD_ITEM, item)
    return item


def list_cook_items(db: Session, cook_id: str) -> List[FoodItem]:
    return (
        db.query(FoodItem)
        .options(selectinload(FoodItem.images))
        .filter(FoodItem.cook_id == cook_id)
        .order_by(FoodItem.created_at.desc())
        .all()
    )


def create_food_item(
    db: Session,
    principal: Principal,
    name: str,
    description: str,
    price: float,
    available: bool = True,
    servings: int = 1,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    image_url: Optional[str] = None,
) -> FoodItem:
    authorize(principal, Action.CREATE_FOOD_ITEM)

    name = (name or "").strip()
    description = (description or "").strip()
    if not name or not description:
        raise InvalidInput("Missing required fields")
    if price is None or price <= 0:
        raise InvalidInput("Price must be positive")
    if servings is None or servings < 1:
        raise InvalidInput("Servings must be at least 1")
    _check_window(start_date, end_date)

    with transaction(db, "creating meal"):
        menu = get_or_create_menu(db, principal.user_id)
        item = FoodItem(
            name=name,
            description=description,
            price=round(float(price), 2),
            available=bool(available),
            servings=int(servings),
            servings_sold=0,
            start_date=naive_utc(start_date),
            end_date=naive_utc(end_date),
            menu_id=menu.id,
            cook_id=principal.user_id,
        )
        db.add(item)
        db.flush()
        if image_url:
            db.add(Image(url=image_url, food_item_id=item.id, user_id=principal.user_id))

    logger.info("Meal %s created by cook %s", item.id, principal.user_id)
    return get_food_item(db, item.id)


def _guarded_update(db: Session, food_item_id: str, values: Dict[str, Any], *guards) -> bool:
    """
    Write `values` to the item only while every guard still holds in the
    database. Returns False when the row no longer qualifies.
    """
    values = {getattr(FoodItem, k): v for k, v in values.items()}
    values[FoodItem.updated_at] = utcnow()
    updated = (
        db.query(FoodItem)
        .filter(FoodItem.id == food_item_id, *guards)
        .update(values, synchronize_session=False)
    )
    return updated == 1


def update_food_item(db: Session, principal: Principal, food_item_id: str, changes: Dict[str, Any]) -> FoodItem:
    """
    Partial update. Recognised keys: name, description, price, available,
    servings, start_date, end_date. Missing keys are left alone, and so is
    an `available` of None.

    Everything is checked before the item is touched. The servings floor and
    the sold-out rule are checked again inside the UPDATE itself, since an
    order completion may sell servings in between.
    """
    item = _owned_item(db, principal, food_item_id)
    new: Dict[str, Any] = {}

    if "name" in changes:
        new["name"] = (changes["name"] or "").strip()
        if not new["name"]:
            raise InvalidInput("Name cannot be empty")
    if "description" in changes:
        new["description"] = (changes["description"] or "").strip()
    if "price" in changes:
        price = changes["price"]
        if price is None or price <= 0:
            raise InvalidInput("Price must be positive")
        new["price"] = round(float(price), 2)
    if "servings" in changes:
        servings = changes["servings"]
        if servings is None or servings < 1:
            raise InvalidInput("Servings must be at least 1")
        if servings < item.servings_sold:
            raise InvalidInput(f"Servings cannot drop below the {item.servings_sold} already sold")
        new["servings"] = int(servings)
    if "start_date" in changes:
        new["start_date"] = naive_utc(changes["start_date"])
    if "end_date" in changes:
        new["end_date"] = naive_utc(changes["end_date"])
    _check_window(new.get("start_date", item.start_date), new.get("end_date", item.end_date))

    if changes.get("available") is not None:
        new["available"] = bool(changes["available"])
        sold_out = item.servings_sold >= new.get("servings", item.servings)
        if new["available"] and sold_out:
            raise InvalidInput(SOLD_OUT)

    if not new:
        return item

    guards = []
    if "servings" in new:
        guards.append(FoodItem.servings_sold <= new["servings"])
    if new.get("available"):
        guards.append(FoodItem.servings_sold < new.get("servings", FoodItem.servings))

    with transaction(db, "updating meal"):
        if not _guarded_update(db, food_item_id, new, *guards):
            logger.info("Meal %s changed while being edited; update refused", food_item_id)
            raise InvalidInput(SOLD_OUT if new.get("available") else "Servings cannot drop below those already sold")

    logger.info("Meal %s updated by cook %s: %s", food_item_id, principal.user_id, sorted(new))
    return get_food_item(db, food_item_id)


def set_availability(db: Session, principal: Principal, food_item_id: str, available: Optional[bool] = None) -> FoodItem:
    """Set the flag, or flip it when `available` is None."""
    item = _owned_item(db, principal, food_item_id)
    target = (not item.available) if available is None else bool(available)
    if target and item.servings_sold >= item.servings:
        raise InvalidInput(SOLD_OUT)

    guards = [FoodItem.servings_sold < FoodItem.servings] if target else []
    with transaction(db, "updating availability"):
        if not _guarded_update(db, food_item_id, {"available": target}, *guards):
            logger.info("Meal %s sold out before it could be re-enabled", food_item_id)
            raise InvalidInput(SOLD_OUT)

    logger.info("Meal %s availability -> %s", food_item_id, target)
    return get_food_item(db, food_item_id)


def delete_food_item_images(db: Session, principal: Principal, food_item_id: str) -> int:
    _owned_item(db, principal, food_item_id)
    with transaction(db, "deleting images"):
        n = db.query(Image).filter(Image.food_item_id == food_item_id).delete(synchronize_session=False)
    logger.info("Deleted %s images of meal %s", n, food_item_id)
    return n


def delete_food_item(db: Session, principal: Principal, food_item_id: str) -> None:
    _owned_item(db, principal, food_item_id)

    has_orders = db.query(OrderItem.id).filter(OrderItem.food_item_id == food_item_id).first() is not None
    if has_orders:
        raise Conflict("Cannot delete meal with order history")

    with transaction(db, "deleting meal"):
        db.query(Image).filter(Image.food_item_id == food_item_id).delete(synchronize_session=False)
        db.query(Review).filter(Review.food_item_id == food_item_id).delete(synchronize_session=False)
        db.query(FoodItem).filter(FoodItem.id == food_item_id).delete(synchronize_session=False)

    logger.info("Meal %s deleted by cook %s", food_item_id, principal.user_id)


def browse(db: Session) -> List[FoodItem]:
    return (
        db.query(FoodItem)
        .options(selectinload(FoodItem.images), selectinload(FoodItem.cook))
        .order_by(FoodItem.available.desc(), FoodItem.created_at.desc())
        .all()
    )


def cook_profile(db: Session, cook_id: str) -> CookProfile:
    cook = db.query(User).options(selectinload(User.images)).filter(User.id == cook_id).first()
    if not cook or cook.role != Role.COOK:
        raise NotFound("Cook not found")

    return CookProfile(
        cook=cook,
        food_items=list_cook_items(db, cook_id),
        reviews=cook_reviews(db, cook_id),
        rating=cook_rating(db, cook_id),
    )
