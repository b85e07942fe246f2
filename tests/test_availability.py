from datetime import datetime, timedelta, timezone

from homecook.models import FoodItem
from homecook.ordering.availability import AVAILABLE, AVAILABLE_SOON, UNAVAILABLE, resolve

NOW = datetime(2026, 5, 1, 12, 0, 0)


def _item(available=True, start=None, end=None) -> FoodItem:
    return FoodItem(name="Soup", price=5.0, available=available, start_date=start, end_date=end, servings=3, servings_sold=0)


def test_flag_off_is_unavailable_regardless_of_window():
    inside = _item(available=False, start=NOW - timedelta(hours=1), end=NOW + timedelta(hours=1))
    assert resolve(inside, NOW).status == UNAVAILABLE
    assert resolve(_item(available=False), NOW).status == UNAVAILABLE


def test_no_window_is_available():
    a = resolve(_item(), NOW)
    assert a.status == AVAILABLE
    assert a.orderable
    assert a.time_range is None


def test_before_window_is_available_soon_with_range():
    a = resolve(_item(start=NOW + timedelta(days=1), end=NOW + timedelta(days=2)), NOW)
    assert a.status == AVAILABLE_SOON
    assert not a.orderable
    assert a.label == "Available Soon"
    assert a.time_range.startswith("Available from 2026-05-02 12:00")


def test_window_bounds_are_inclusive():
    start, end = NOW - timedelta(hours=2), NOW + timedelta(hours=2)
    item = _item(start=start, end=end)
    assert resolve(item, start).status == AVAILABLE
    assert resolve(item, end).status == AVAILABLE
    assert resolve(item, NOW).status == AVAILABLE


def test_after_window_is_unavailable():
    item = _item(start=NOW - timedelta(days=2), end=NOW - timedelta(days=1))
    assert resolve(item, NOW).status == UNAVAILABLE


def test_half_open_window_is_ignored():
    assert resolve(_item(start=NOW + timedelta(days=1)), NOW).status == AVAILABLE
    assert resolve(_item(end=NOW - timedelta(days=1)), NOW).status == AVAILABLE


def test_aware_times_are_compared_as_utc():
    plus2 = timezone(timedelta(hours=2))
    # 15:00+02:00 is 13:00 UTC, an hour after NOW
    item = _item(start=datetime(2026, 5, 1, 15, 0, tzinfo=plus2), end=datetime(2026, 5, 1, 18, 0, tzinfo=plus2))
    assert resolve(item, NOW).status == AVAILABLE_SOON
    assert resolve(item, NOW.replace(tzinfo=timezone.utc) + timedelta(hours=2)).status == AVAILABLE
