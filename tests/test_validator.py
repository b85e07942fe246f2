from datetime import timedelta

import pytest

from conftest import NOW, make_item
from homecook.errors import InvalidInput, InvalidQuantity, NotFound, Unavailable
from homecook.ordering.cart import CartLine
from homecook.ordering.validator import validate


def test_empty_order_is_rejected(db):
    with pytest.raises(InvalidInput):
        validate(db, [], NOW)


def test_unknown_item_is_not_found(db, cook):
    item = make_item(db, cook)
    with pytest.raises(NotFound) as exc:
        validate(db, [CartLine(item.id, 1, item.price), CartLine("X", 1, 9.99)], NOW)
    assert exc.value.items == ["X"]


def test_switched_off_item_is_unavailable(db, cook):
    item = make_item(db, cook, available=False)
    with pytest.raises(Unavailable) as exc:
        validate(db, [CartLine(item.id, 1, item.price)], NOW)
    assert exc.value.items == [item.id]


def test_item_not_yet_in_window_is_unavailable(db, cook):
    item = make_item(db, cook, start_date=NOW + timedelta(days=1), end_date=NOW + timedelta(days=2))
    with pytest.raises(Unavailable):
        validate(db, [CartLine(item.id, 1, item.price)], NOW)


def test_non_positive_quantity_or_price(db, cook):
    item = make_item(db, cook)
    with pytest.raises(InvalidQuantity):
        validate(db, [CartLine(item.id, 0, item.price)], NOW)
    with pytest.raises(InvalidQuantity):
        validate(db, [CartLine(item.id, 1, 0.0)], NOW)


def test_existence_is_checked_before_quantity(db):
    with pytest.raises(NotFound):
        validate(db, [CartLine("X", 0, 9.99)], NOW)


def test_quantity_against_remaining_servings(db, cook):
    item = make_item(db, cook, servings=2)
    assert item.id in validate(db, [CartLine(item.id, 2, item.price)], NOW)

    with pytest.raises(Unavailable):
        validate(db, [CartLine(item.id, 3, item.price)], NOW)


def test_repeated_lines_are_summed_per_item(db, cook):
    item = make_item(db, cook, servings=2)
    with pytest.raises(Unavailable):
        validate(db, [CartLine(item.id, 1, item.price), CartLine(item.id, 2, item.price)], NOW)


def test_stale_price_is_rejected(db, cook):
    item = make_item(db, cook, price=10.0)
    with pytest.raises(InvalidInput) as exc:
        validate(db, [CartLine(item.id, 1, 8.0)], NOW)
    assert exc.type is InvalidInput


def test_validation_never_touches_inventory(db, cook):
    item = make_item(db, cook, servings=2)
    validate(db, [CartLine(item.id, 2, item.price)], NOW)
    db.refresh(item)
    assert item.servings_sold == 0
    assert item.available is True
