# homecook/ordering/orders.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from ..auth import Principal
from ..db import transaction
from ..errors import InvalidInput, InvalidTransition, NotFound
from ..models import FoodItem, Order, OrderItem, OrderStatus, utcnow
from ..policy import Action, authorize
from . import inventory
from .cart import CartLine, build_summary, cart_total, same_amount
from .validator import validate

logger = logging.getLogger(__name__)

# PENDING first, then COMPLETED, then CANCELLED
_STATUS_RANK = case(
    (Order.status == OrderStatus.PENDING, 0),
    (Order.status == OrderStatus.COMPLETED, 1),
    else_=2,
)


def _load(db: Session, order_id: str) -> Order:
    order = (
        db.query(Order)
        .options(joinedload(Order.items).joinedload(OrderItem.food_item))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    return order


def _transition(db: Session, order_id: str, target: str) -> None:
    """
    PENDING -> target as one conditional UPDATE. A row count of 0 means
    someone else already moved the order out of PENDING.
    """
    updated = (
        db.query(Order)
        .filter(Order.id == order_id, Order.status == OrderStatus.PENDING)
        .update({Order.status: target, Order.updated_at: utcnow()}, synchronize_session=False)
    )
    if updated != 1:
        current = db.query(Order.status).filter(Order.id == order_id).scalar()
        raise InvalidTransition(f"Cannot move order from {current} to {target}")


def create_order(
    db: Session,
    principal: Principal,
    lines: Sequence[CartLine],
    total: float,
    now: Optional[datetime] = None,
) -> Order:
    authorize(principal, Action.CREATE_ORDER)

    validate(db, lines, now)

    expected = cart_total(lines)
    if total is None or total <= 0 or not same_amount(total, expected):
        raise InvalidInput(f"Order total {total} does not match items total {expected:.2f}")

    logger.info("Creating order for eater %s with %s items", principal.user_id, len(lines))

    with transaction(db, "creating order"):
        order = Order(eater_id=principal.user_id, status=OrderStatus.PENDING, total=expected)
        order.items = [OrderItem(food_item_id=x.food_item_id, quantity=x.quantity, price=x.price) for x in lines]
        db.add(order)

    logger.info("Order %s created", order.id)
    return _load(db, order.id)


def cancel_order(db: Session, principal: Principal, order_id: str) -> Order:
    order = _load(db, order_id)
    authorize(principal, Action.CANCEL_ORDER, order)

    with transaction(db, "cancelling order"):
        _transition(db, order_id, OrderStatus.CANCELLED)

    logger.info("Order %s cancelled by eater %s", order_id, principal.user_id)
    db.expire_all()
    return _load(db, order_id)


def complete_order(db: Session, principal: Principal, order_id: str, target_status: str) -> Order:
    """
    Cook marks an order done. The status change and the inventory debit for
    every line happen in one transaction: a shortfall on any line leaves the
    order PENDING and no servings debited.
    """
    order = _load(db, order_id)
    authorize(principal, Action.COMPLETE_ORDER, order)

    if target_status != OrderStatus.COMPLETED:
        raise InvalidTransition(f"Invalid target status: {target_status}")

    debits = [(oi.food_item_id, oi.quantity) for oi in order.items]

    with transaction(db, "completing order"):
        _transition(db, order_id, OrderStatus.COMPLETED)
        for food_item_id, qty in debits:
            inventory.commit(db, food_item_id, qty)

    logger.info("Order %s completed by cook %s", order_id, principal.user_id)
    db.expire_all()
    return _load(db, order_id)


def get_order(db: Session, principal: Principal, order_id: str) -> Order:
    order = _load(db, order_id)
    authorize(principal, Action.VIEW_ORDER, order)
    return order


def list_for_eater(db: Session, eater_id: str) -> List[Order]:
    return (
        db.query(Order)
        .options(joinedload(Order.items).joinedload(OrderItem.food_item))
        .filter(Order.eater_id == eater_id)
        .order_by(_STATUS_RANK, Order.created_at.desc())
        .all()
    )


def list_pending_for_cook(db: Session, principal: Principal) -> List[Order]:
    authorize(principal, Action.VIEW_COOK_ORDERS)
    return (
        db.query(Order)
        .options(joinedload(Order.items).joinedload(OrderItem.food_item), joinedload(Order.eater))
        .filter(
            Order.status == OrderStatus.PENDING,
            Order.items.any(OrderItem.food_item.has(FoodItem.cook_id == principal.user_id)),
        )
        .order_by(Order.created_at.desc())
        .all()
    )


def order_summary(order: Order, currency_symbol: str = "$") -> str:
    rows = [(oi.food_item.name if oi.food_item else "Item", oi.quantity, oi.price) for oi in order.items]
    summary, _total = build_summary(rows, currency_symbol=currency_symbol)
    return summary
