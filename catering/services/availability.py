# catering/services/availability.py
"""
Czy dana data dostawy przyjmuje jeszcze zamowienia.

Czyste funkcje, bez dostepu do bazy: wolane przy renderowaniu kalendarza
(doradczo) i przy skladaniu zamowienia / ponownej platnosci (wiazaco).
Kolejnosc regul:
  1. weekend -> closed
  2. is_blocked -> blocked
  3. current_orders >= max_orders -> full
  4. po cutoffie -> expired
  5. data w przeszlosci -> expired
  6. available
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from zoneinfo import ZoneInfo

from catering.utils.settings import TIMEZONE, DEFAULT_CUTOFF_TIME


class Availability(str, Enum):
    AVAILABLE = "available"
    BLOCKED = "blocked"
    FULL = "full"
    EXPIRED = "expired"
    CLOSED = "closed"


@dataclass(frozen=True)
class DateAvailability:
    date: date
    status: Availability
    reason: str

    @property
    def is_available(self) -> bool:
        return self.status == Availability.AVAILABLE


def _local_now(now: datetime, tz: ZoneInfo) -> datetime:
    # naive "now" traktujemy jako czas lokalny szkoly
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def cutoff_instant(
    delivery_date: date,
    entry=None,
    tz: ZoneInfo | None = None,
    default_cutoff: time | None = None,
) -> datetime:
    """cutoff_date (domyslnie sama data dostawy) o cutoff_time (domyslnie wczesny ranek)."""
    tz = tz or ZoneInfo(TIMEZONE)
    cutoff_day = delivery_date
    cutoff_time = default_cutoff or DEFAULT_CUTOFF_TIME
    if entry is not None:
        cutoff_day = entry.cutoff_date or delivery_date
        cutoff_time = entry.cutoff_time or cutoff_time
    return datetime.combine(cutoff_day, cutoff_time, tzinfo=tz)


def is_window_closed(
    delivery_date: date,
    now: datetime,
    entry=None,
    tz: ZoneInfo | None = None,
    default_cutoff: time | None = None,
) -> bool:
    """Rules 4 and 5 only: the cutoff has passed or the date is already behind us."""
    tz = tz or ZoneInfo(TIMEZONE)
    local_now = _local_now(now, tz)
    if local_now > cutoff_instant(delivery_date, entry, tz, default_cutoff):
        return True
    return delivery_date < local_now.date()


def evaluate(
    delivery_date: date,
    now: datetime,
    entry=None,
    tz: ZoneInfo | None = None,
    default_cutoff: time | None = None,
) -> DateAvailability:
    """
    Decide whether a delivery date is orderable right now.

    Args:
        delivery_date: Calendar date being ordered against
        now: Current instant (aware, or naive local time)
        entry: Matching ScheduleEntry row, or None when the date has no entry
        tz: School timezone (defaults to settings.TIMEZONE)
        default_cutoff: Cutoff time used when the entry has none

    Returns:
        DateAvailability with status and a human-readable reason
    """
    if delivery_date.weekday() >= 5:
        return DateAvailability(delivery_date, Availability.CLOSED, "Closed on Saturdays and Sundays")

    if entry is not None and entry.is_blocked:
        return DateAvailability(delivery_date, Availability.BLOCKED, entry.notes or "Date is blocked")

    if entry is not None and entry.max_orders is not None:
        if (entry.current_orders or 0) >= entry.max_orders:
            return DateAvailability(delivery_date, Availability.FULL, "Order quota is full")

    if is_window_closed(delivery_date, now, entry, tz, default_cutoff):
        return DateAvailability(delivery_date, Availability.EXPIRED, "Ordering deadline has passed")

    return DateAvailability(delivery_date, Availability.AVAILABLE, "Available")
