# catering/services/schedule_service.py
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.orm import Session

from catering.data.models.schedule import ScheduleModel
from catering.domain.errors import ValidationError
from catering.domain.schemas import ScheduleIn
from catering.repos.schedule_repo import ScheduleRepo
from catering.services import availability
from catering.utils.logging import get_logger

logger = get_logger(__name__)

MAX_RANGE_DAYS = 62


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleService:
    """
    Harmonogram dostaw (blokady, limity, cutoff) i kalendarz dostepnosci.
    current_orders nie jest edytowalny recznie, liczy go create_order i task quota.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.repo = ScheduleRepo(db)
        self.clock = clock

    def _check_range(self, start: date, end: date) -> None:
        if end < start:
            raise ValidationError("End date is before start date")
        if (end - start).days + 1 > MAX_RANGE_DAYS:
            raise ValidationError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    def upsert(self, day: date, payload: ScheduleIn) -> ScheduleModel:
        if payload.cutoff_date is not None and payload.cutoff_date > day:
            raise ValidationError("Cutoff date cannot be after the delivery date")

        entry = self.repo.get_by_date(day)
        if entry is None:
            entry = ScheduleModel(date=day, current_orders=0)

        entry.is_blocked = payload.is_blocked
        entry.max_orders = payload.max_orders
        entry.cutoff_date = payload.cutoff_date
        entry.cutoff_time = payload.cutoff_time
        entry.notes = payload.notes

        entry = self.repo.save(entry)
        logger.info(
            f"Schedule {day}: blocked={entry.is_blocked}, max_orders={entry.max_orders}, "
            f"cutoff={entry.cutoff_date or day} {entry.cutoff_time or 'default'}"
        )
        return entry

    def list_entries(self, start: date, end: date) -> list[ScheduleModel]:
        self._check_range(start, end)
        return self.repo.list_range(start, end)

    def availability_range(self, start: date, end: date) -> list[availability.DateAvailability]:
        """Kalendarz dla UI (doradczo); wiazace sprawdzenie jest w create_order."""
        self._check_range(start, end)
        entries = {e.date: e for e in self.repo.list_range(start, end)}
        now = self.clock()
        days = (end - start).days + 1
        return [
            availability.evaluate(day, now, entries.get(day))
            for day in (start + timedelta(days=i) for i in range(days))
        ]
