# homecook/ordering/inventory.py
from __future__ import annotations

import logging

from sqlalchemy import case
from sqlalchemy.orm import Session

from ..errors import InvalidQuantity, Unavailable
from ..models import FoodItem, utcnow

logger = logging.getLogger(__name__)


def remaining(item: FoodItem) -> int:
    return max(0, int(item.servings or 0) - int(item.servings_sold or 0))


def can_fulfill(item: FoodItem, requested_qty: int) -> bool:
    return 0 < requested_qty <= remaining(item)


def commit(db: Session, food_item_id: str, qty: int) -> None:
    """
    Debit `qty` servings from a food item as one conditional UPDATE.

    The row only changes if the remaining capacity covers the request, so two
    concurrent debits can never oversell. Selling the last serving flips
    `available` off in the same statement. The caller owns the transaction:
    nothing is committed here.
    """
    if qty <= 0:
        raise InvalidQuantity("Quantity must be positive", items=[food_item_id])

    # Reads only the pre-debit row. `available` precedes `servings_sold` in the
    # table, so engines that apply SET left to right see the same values.
    sells_out = FoodItem.servings - FoodItem.servings_sold <= qty
    updated = (
        db.query(FoodItem)
        .filter(
            FoodItem.id == food_item_id,
            FoodItem.servings - FoodItem.servings_sold >= qty,
        )
        .update(
            {
                FoodItem.available: case((sells_out, False), else_=FoodItem.available),
                FoodItem.servings_sold: FoodItem.servings_sold + qty,
                FoodItem.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
    )
    if updated != 1:
        logger.warning("Inventory debit refused: item %s, qty %s", food_item_id, qty)
        raise Unavailable("Not enough servings left for this item", items=[food_item_id])

    logger.info("Inventory debited: item %s, qty %s", food_item_id, qty)
