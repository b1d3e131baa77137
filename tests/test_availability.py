from datetime import date, datetime, time, timezone
from types import SimpleNamespace

from catering.services.availability import Availability, cutoff_instant, evaluate, is_window_closed

from conftest import NOW


def entry(**fields):
    base = dict(
        is_blocked=False,
        max_orders=None,
        current_orders=0,
        cutoff_date=None,
        cutoff_time=None,
        notes=None,
    )
    base.update(fields)
    return SimpleNamespace(**base)


class TestEvaluate:
    def test_open_weekday_without_entry_is_available(self):
        result = evaluate(date(2026, 3, 4), NOW)
        assert result.status == Availability.AVAILABLE
        assert result.is_available

    def test_weekend_is_closed(self):
        assert evaluate(date(2026, 3, 7), NOW).status == Availability.CLOSED
        assert evaluate(date(2026, 3, 8), NOW).status == Availability.CLOSED

    def test_weekend_wins_over_blocked_entry(self):
        result = evaluate(date(2026, 3, 7), NOW, entry(is_blocked=True, notes="Holiday"))
        assert result.status == Availability.CLOSED

    def test_blocked_uses_entry_notes_as_reason(self):
        result = evaluate(date(2026, 3, 4), NOW, entry(is_blocked=True, notes="Nyepi"))
        assert result.status == Availability.BLOCKED
        assert result.reason == "Nyepi"

    def test_full_when_counter_reaches_max(self):
        result = evaluate(date(2026, 3, 4), NOW, entry(max_orders=10, current_orders=10))
        assert result.status == Availability.FULL

    def test_below_max_is_available(self):
        result = evaluate(date(2026, 3, 4), NOW, entry(max_orders=10, current_orders=9))
        assert result.is_available

    def test_zero_max_orders_means_full(self):
        result = evaluate(date(2026, 3, 4), NOW, entry(max_orders=0))
        assert result.status == Availability.FULL

    def test_full_is_reported_before_expired(self):
        result = evaluate(date(2026, 3, 2), NOW, entry(max_orders=1, current_orders=1))
        assert result.status == Availability.FULL

    def test_same_day_after_default_cutoff_is_expired(self):
        # 08:00 lokalnie, domyslny cutoff 05:00
        assert evaluate(date(2026, 3, 2), NOW).status == Availability.EXPIRED

    def test_same_day_before_custom_cutoff_is_available(self):
        result = evaluate(date(2026, 3, 2), NOW, entry(cutoff_time=time(9, 0)))
        assert result.is_available

    def test_explicit_cutoff_date_in_the_past_is_expired(self):
        result = evaluate(date(2026, 3, 4), NOW, entry(cutoff_date=date(2026, 3, 1), cutoff_time=time(17, 0)))
        assert result.status == Availability.EXPIRED

    def test_past_date_is_expired(self):
        assert evaluate(date(2026, 2, 27), NOW).status == Availability.EXPIRED

    def test_naive_now_is_school_local_time(self):
        local_morning = datetime(2026, 3, 2, 4, 59)
        assert evaluate(date(2026, 3, 2), local_morning).is_available
        assert evaluate(date(2026, 3, 2), datetime(2026, 3, 2, 5, 1)).status == Availability.EXPIRED


class TestWindow:
    def test_cutoff_instant_defaults_to_delivery_day(self):
        instant = cutoff_instant(date(2026, 3, 4))
        assert instant.date() == date(2026, 3, 4)
        assert instant.time() == time(5, 0)
        assert instant.utcoffset().total_seconds() == 7 * 3600

    def test_window_ignores_quota_and_block(self):
        busy = entry(is_blocked=True, max_orders=1, current_orders=5)
        assert not is_window_closed(date(2026, 3, 4), NOW, busy)

    def test_window_closed_after_cutoff(self):
        late = datetime(2026, 3, 3, 23, 0, tzinfo=timezone.utc)  # 06:00 w Dzakarcie 4 marca
        assert is_window_closed(date(2026, 3, 4), late)
