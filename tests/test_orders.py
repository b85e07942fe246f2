import pytest

from conftest import NOW, make_item, make_user, principal
from homecook.db import Database
from homecook.errors import Forbidden, InvalidInput, InvalidTransition, NotFound, Unavailable
from homecook.models import FoodItem, Order, OrderStatus, Role
from homecook.ordering import orders
from homecook.ordering.cart import CartLine


def _place(db, eater, *lines):
    total = round(sum(q * p for _, q, p in lines), 2)
    return orders.create_order(db, principal(eater), [CartLine(i, q, p) for i, q, p in lines], total, NOW)


def test_created_order_is_pending_with_matching_total(db, cook, eater):
    a = make_item(db, cook, name="Lasagna", price=12.5)
    b = make_item(db, cook, name="Salad", price=4.25)

    order = _place(db, eater, (a.id, 2, a.price), (b.id, 1, b.price))

    assert order.status == OrderStatus.PENDING
    assert order.eater_id == eater.id
    assert order.total == 29.25
    assert round(sum(oi.quantity * oi.price for oi in order.items), 2) == order.total
    # no inventory effect until completion
    db.refresh(a)
    assert a.servings_sold == 0


def test_snapshot_price_survives_item_price_change(db, cook, eater):
    a = make_item(db, cook, price=10.0)
    order = _place(db, eater, (a.id, 1, 10.0))

    a.price = 15.0
    db.commit()
    db.refresh(order)
    assert order.items[0].price == 10.0


def test_total_must_match_items(db, cook, eater):
    a = make_item(db, cook, price=10.0)
    with pytest.raises(InvalidInput):
        orders.create_order(db, principal(eater), [CartLine(a.id, 2, 10.0)], 15.0, NOW)
    assert db.query(Order).count() == 0


def test_unknown_item_creates_no_order(db, eater):
    with pytest.raises(NotFound):
        orders.create_order(db, principal(eater), [CartLine("X", 1, 9.99)], 9.99, NOW)
    assert db.query(Order).count() == 0


def test_eater_cancels_pending_order(db, cook, eater):
    a = make_item(db, cook)
    order = _place(db, eater, (a.id, 1, a.price))

    cancelled = orders.cancel_order(db, principal(eater), order.id)
    assert cancelled.status == OrderStatus.CANCELLED

    db.refresh(a)
    assert a.servings_sold == 0


def test_only_the_eater_may_cancel(db, cook, eater):
    a = make_item(db, cook)
    order = _place(db, eater, (a.id, 1, a.price))
    other = make_user(db, Role.EATER, name="Other")

    with pytest.raises(Forbidden):
        orders.cancel_order(db, principal(other), order.id)
    with pytest.raises(Forbidden):
        orders.cancel_order(db, principal(cook), order.id)


def test_cancel_missing_order(db, eater):
    with pytest.raises(NotFound):
        orders.cancel_order(db, principal(eater), "nope")


@pytest.mark.parametrize("first", ["cancel", "complete"])
def test_terminal_states_reject_every_transition(db, cook, eater, first):
    a = make_item(db, cook)
    order = _place(db, eater, (a.id, 1, a.price))
    if first == "cancel":
        orders.cancel_order(db, principal(eater), order.id)
    else:
        orders.complete_order(db, principal(cook), order.id, OrderStatus.COMPLETED)

    with pytest.raises(InvalidTransition):
        orders.cancel_order(db, principal(eater), order.id)
    with pytest.raises(InvalidTransition):
        orders.complete_order(db, principal(cook), order.id, OrderStatus.COMPLETED)


def test_cook_completes_and_inventory_is_debited(db, cook, eater):
    a = make_item(db, cook, servings=2)
    b = make_item(db, cook, name="Salad", price=4.0, servings=10)
    order = _place(db, eater, (a.id, 2, a.price), (b.id, 3, b.price))

    done = orders.complete_order(db, principal(cook), order.id, OrderStatus.COMPLETED)
    assert done.status == OrderStatus.COMPLETED

    db.refresh(a)
    db.refresh(b)
    assert (a.servings_sold, a.available) == (2, False)
    assert (b.servings_sold, b.available) == (3, True)


def test_completion_requires_an_owning_cook(db, cook, eater):
    a = make_item(db, cook)
    order = _place(db, eater, (a.id, 1, a.price))
    stranger = make_user(db, Role.COOK, name="Luigi")

    with pytest.raises(Forbidden):
        orders.complete_order(db, principal(stranger), order.id, OrderStatus.COMPLETED)
    with pytest.raises(Forbidden):
        orders.complete_order(db, principal(eater), order.id, OrderStatus.COMPLETED)
    assert db.query(Order).filter(Order.id == order.id).one().status == OrderStatus.PENDING


def test_completion_only_to_completed(db, cook, eater):
    a = make_item(db, cook)
    order = _place(db, eater, (a.id, 1, a.price))
    with pytest.raises(InvalidTransition):
        orders.complete_order(db, principal(cook), order.id, OrderStatus.CANCELLED)


def test_complete_missing_order(db, cook):
    with pytest.raises(NotFound):
        orders.complete_order(db, principal(cook), "nope", OrderStatus.COMPLETED)


def test_inventory_shortfall_keeps_order_pending(db, cook, eater):
    a = make_item(db, cook, servings=2)
    first = _place(db, eater, (a.id, 2, a.price))
    second = _place(db, eater, (a.id, 2, a.price))

    orders.complete_order(db, principal(cook), first.id, OrderStatus.COMPLETED)
    with pytest.raises(Unavailable):
        orders.complete_order(db, principal(cook), second.id, OrderStatus.COMPLETED)

    db.expire_all()
    assert db.query(Order).filter(Order.id == second.id).one().status == OrderStatus.PENDING
    assert db.query(FoodItem).filter(FoodItem.id == a.id).one().servings_sold == 2


def test_listings(db, cook, eater):
    a = make_item(db, cook)
    other_cook = make_user(db, Role.COOK, name="Luigi")
    b = make_item(db, other_cook, name="Pizza")

    o1 = _place(db, eater, (a.id, 1, a.price))
    o2 = _place(db, eater, (b.id, 1, b.price))
    o3 = _place(db, eater, (a.id, 1, a.price))
    orders.cancel_order(db, principal(eater), o1.id)

    mine = orders.list_for_eater(db, eater.id)
    assert [o.status for o in mine] == [OrderStatus.PENDING, OrderStatus.PENDING, OrderStatus.CANCELLED]

    incoming = orders.list_pending_for_cook(db, principal(cook))
    assert [o.id for o in incoming] == [o3.id]
    assert o2.id not in [o.id for o in incoming]

    with pytest.raises(Forbidden):
        orders.list_pending_for_cook(db, principal(eater))


def test_order_summary_text(db, cook, eater):
    a = make_item(db, cook, name="Lasagna", price=12.5)
    order = _place(db, eater, (a.id, 2, a.price))
    text = orders.order_summary(order)
    assert "1. x2 Lasagna = $25.00" in text
    assert text.endswith("Total: $25.00")


def test_concurrent_completion_only_one_wins(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'race.db'}")
    database.create_all()

    setup = database.session()
    cook = make_user(setup, Role.COOK, name="Maria")
    eater = make_user(setup, Role.EATER, name="Tom")
    item = make_item(setup, cook, servings=5)
    order_id = _place(setup, eater, (item.id, 1, item.price)).id
    item_id = item.id
    cook_p = principal(cook)
    setup.close()

    first = database.session()
    second = database.session()
    try:
        # both requests have read the order while it was still PENDING
        assert first.get(Order, order_id).status == OrderStatus.PENDING
        assert second.get(Order, order_id).status == OrderStatus.PENDING

        orders.complete_order(first, cook_p, order_id, OrderStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            orders.complete_order(second, cook_p, order_id, OrderStatus.COMPLETED)
    finally:
        first.close()
        second.close()

    check = database.session()
    assert check.get(FoodItem, item_id).servings_sold == 1
    assert check.get(Order, order_id).status == OrderStatus.COMPLETED
    check.close()
    database.dispose()
