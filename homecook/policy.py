# homecook/policy.py
"""
Authorization rules, one place for all of them.

Every mutating operation asks `authorize(principal, action, resource)` before it
touches the database. Resources are whatever ORM object the action targets
(an Order, a FoodItem, a cook User) or None when the action has no target yet.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .auth import Principal
from .errors import Forbidden
from .models import FoodItem, Order, Role, User

logger = logging.getLogger(__name__)


class Action:
    CREATE_ORDER = "create_order"
    CANCEL_ORDER = "cancel_order"
    COMPLETE_ORDER = "complete_order"
    VIEW_ORDER = "view_order"
    VIEW_COOK_ORDERS = "view_cook_orders"
    CREATE_FOOD_ITEM = "create_food_item"
    MANAGE_FOOD_ITEM = "manage_food_item"
    REVIEW = "review"


def _cook_owns_item_in(order: Order, cook_id: str) -> bool:
    return any(oi.food_item is not None and oi.food_item.cook_id == cook_id for oi in order.items)


def is_allowed(principal: Principal, action: str, resource: Optional[Any] = None) -> bool:
    if action == Action.CREATE_ORDER:
        return True

    if action == Action.CANCEL_ORDER:
        return isinstance(resource, Order) and resource.eater_id == principal.user_id

    if action == Action.COMPLETE_ORDER:
        return (
            principal.role == Role.COOK
            and isinstance(resource, Order)
            and _cook_owns_item_in(resource, principal.user_id)
        )

    if action == Action.VIEW_ORDER:
        return isinstance(resource, Order) and (
            resource.eater_id == principal.user_id or _cook_owns_item_in(resource, principal.user_id)
        )

    if action in (Action.VIEW_COOK_ORDERS, Action.CREATE_FOOD_ITEM):
        return principal.role == Role.COOK

    if action == Action.MANAGE_FOOD_ITEM:
        return isinstance(resource, FoodItem) and resource.cook_id == principal.user_id

    if action == Action.REVIEW:
        # resource is the cook being reviewed (directly or through their item)
        return isinstance(resource, User) and resource.id != principal.user_id

    return False


_DENIALS = {
    Action.CANCEL_ORDER: "You can only cancel your own orders.",
    Action.COMPLETE_ORDER: "Only the cook of an item in this order can update it.",
    Action.VIEW_ORDER: "You do not have access to this order.",
    Action.VIEW_COOK_ORDERS: "Only cooks can view incoming orders.",
    Action.CREATE_FOOD_ITEM: "Only cooks can create meals.",
    Action.MANAGE_FOOD_ITEM: "You can only manage your own meals.",
    Action.REVIEW: "You cannot review yourself.",
}


def authorize(principal: Principal, action: str, resource: Optional[Any] = None) -> None:
    if is_allowed(principal, action, resource):
        return
    logger.warning(
        "Denied %s for user %s (role %s) on %s",
        action,
        principal.user_id,
        principal.role,
        getattr(resource, "id", None),
    )
    raise Forbidden(_DENIALS.get(action, "Forbidden"))
