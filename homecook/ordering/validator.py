# homecook/ordering/validator.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..errors import InvalidInput, InvalidQuantity, NotFound, Unavailable
from ..models import FoodItem
from . import inventory
from .availability import resolve
from .cart import CartLine, quantities_by_item, same_amount


def validate(db: Session, lines: Sequence[CartLine], now: Optional[datetime] = None) -> Dict[str, FoodItem]:
    """
    Check a proposed order against current item state. Never mutates anything.

    Stages run in order and the first stage with a failing line raises,
    naming every line of that stage that failed:
      non-empty -> exists -> currently Available -> qty/price > 0
      -> enough servings left -> price matches the item's current price

    Returns the referenced items keyed by id.
    """
    if not lines:
        raise InvalidInput("Order must contain at least one item")

    ids = list(dict.fromkeys(x.food_item_id for x in lines))
    found = db.query(FoodItem).filter(FoodItem.id.in_(ids)).all()
    items = {it.id: it for it in found}

    missing = [i for i in ids if i not in items]
    if missing:
        raise NotFound("One or more food items not found", items=missing)

    unavailable = [i for i in ids if not resolve(items[i], now).orderable]
    if unavailable:
        raise Unavailable("One or more food items are currently unavailable", items=unavailable)

    bad: List[str] = []
    for x in lines:
        if not isinstance(x.quantity, int) or x.quantity <= 0 or x.price is None or x.price <= 0:
            bad.append(x.food_item_id)
    if bad:
        raise InvalidQuantity("Invalid item data: quantity and price must be positive", items=_dedupe(bad))

    short = [i for i, qty in quantities_by_item(lines).items() if not inventory.can_fulfill(items[i], qty)]
    if short:
        raise Unavailable("Not enough servings left for one or more items", items=short)

    repriced = [x.food_item_id for x in lines if not same_amount(x.price, items[x.food_item_id].price)]
    if repriced:
        raise InvalidInput("Item price has changed; refresh your cart", items=_dedupe(repriced))

    return items


def _dedupe(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))
