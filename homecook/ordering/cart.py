# homecook/ordering/cart.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

# Totals are compared to the cent
MONEY_TOLERANCE = 0.005


@dataclass(frozen=True)
class CartLine:
    food_item_id: str
    quantity: int
    price: float


def line_total(qty: int, price: float) -> float:
    return round(int(qty) * float(price), 2)


def cart_total(lines: Iterable[CartLine]) -> float:
    total = 0.0
    for x in lines:
        total += line_total(x.quantity, x.price)
    return round(total, 2)


def same_amount(a: float, b: float) -> bool:
    return abs(float(a) - float(b)) < MONEY_TOLERANCE


def quantities_by_item(lines: Iterable[CartLine]) -> dict[str, int]:
    """Same item on several lines counts once, with the quantities summed."""
    out: dict[str, int] = {}
    for x in lines:
        out[x.food_item_id] = out.get(x.food_item_id, 0) + int(x.quantity)
    return out


def build_summary(rows: List[Tuple[str, int, float]], currency_symbol: str = "$") -> Tuple[str, float]:
    """rows are (name, qty, unit price) tuples; returns (text, total)."""
    if not rows:
        return ("Your order is empty.", 0.0)

    lines: List[str] = []
    total = 0.0
    for i, (name, qty, price) in enumerate(rows, start=1):
        lt = line_total(qty, price)
        total += lt
        lines.append(f"{i}. x{qty} {name} = {currency_symbol}{lt:.2f}")

    total = round(total, 2)
    return ("Order summary:\n" + "\n".join(lines) + f"\n\nTotal: {currency_symbol}{total:.2f}", total)
