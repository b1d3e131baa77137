# catering/repos/schedule_repo.py
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from catering.data.models.schedule import ScheduleModel


class ScheduleRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_date(self, day: date) -> ScheduleModel | None:
        return self.db.execute(
            select(ScheduleModel).where(ScheduleModel.date == day)
        ).scalar_one_or_none()

    def list_range(self, start: date, end: date) -> list[ScheduleModel]:
        return list(
            self.db.execute(
                select(ScheduleModel)
                .where(ScheduleModel.date >= start, ScheduleModel.date <= end)
                .order_by(ScheduleModel.date)
            ).scalars().all()
        )

    def list_from(self, start: date) -> list[ScheduleModel]:
        return list(
            self.db.execute(
                select(ScheduleModel).where(ScheduleModel.date >= start).order_by(ScheduleModel.date)
            ).scalars().all()
        )

    def save(self, entry: ScheduleModel) -> ScheduleModel:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def increment_orders(self, day: date) -> int:
        """
        current_orders = current_orders + 1 w jednym UPDATE.

        To NIE jest blokada: check (availability) i increment to dwa kroki,
        wiec rownolegle zamowienia moga przekroczyc max_orders.
        Returns rowcount (0 gdy brak wpisu w harmonogramie).
        """
        result = self.db.execute(
            update(ScheduleModel)
            .where(ScheduleModel.date == day)
            .values(current_orders=ScheduleModel.current_orders + 1)
        )
        return result.rowcount

    def set_current_orders(self, entry_id: int, value: int) -> None:
        self.db.execute(
            update(ScheduleModel).where(ScheduleModel.id == entry_id).values(current_orders=value)
        )

    def commit(self):
        self.db.commit()
