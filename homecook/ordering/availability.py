# homecook/ordering/availability.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..models import FoodItem, utcnow

UNAVAILABLE = "Unavailable"
AVAILABLE_SOON = "AvailableSoon"
AVAILABLE = "Available"

_LABELS = {
    UNAVAILABLE: "Unavailable",
    AVAILABLE_SOON: "Available Soon",
    AVAILABLE: "Available",
}


@dataclass(frozen=True)
class Availability:
    status: str
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None

    @property
    def label(self) -> str:
        return _LABELS[self.status]

    @property
    def time_range(self) -> Optional[str]:
        if self.status == UNAVAILABLE or not (self.window_start and self.window_end):
            return None
        start = self.window_start.strftime("%Y-%m-%d %H:%M")
        end = self.window_end.strftime("%Y-%m-%d %H:%M")
        if self.status == AVAILABLE_SOON:
            return f"Available from {start} to {end}"
        return f"Available until {end}"

    @property
    def orderable(self) -> bool:
        return self.status == AVAILABLE


def naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def resolve(item: FoodItem, now: Optional[datetime] = None) -> Availability:
    """
    Current status of a food item. Pure: recomputed on every read, never stored.
      - available flag off            -> Unavailable (window ignored)
      - window set, before start      -> AvailableSoon
      - window set, inside (inclusive)-> Available
      - window set, after end         -> Unavailable
      - no window                     -> Available
    """
    if not item.available:
        return Availability(UNAVAILABLE)

    start = naive_utc(item.start_date)
    end = naive_utc(item.end_date)
    if start is None or end is None:
        return Availability(AVAILABLE)

    now = naive_utc(now) or utcnow()
    if now < start:
        return Availability(AVAILABLE_SOON, start, end)
    if now <= end:
        return Availability(AVAILABLE, start, end)
    return Availability(UNAVAILABLE, start, end)
