# catering/tasks/quota.py
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from catering.celery_worker import celery_app
from catering.data.database import SessionLocal
from catering.repos.order_repo import OrderRepo
from catering.repos.schedule_repo import ScheduleRepo
from catering.utils.settings import TIMEZONE
from catering.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_quota(db: Session, today: date) -> int:
    """
    Przelicza current_orders od nowa (zamowienia nieanulowane) dla dat >= today.
    Naprawia dryf licznika po wyscigach i anulowaniach. Zwraca liczbe poprawionych wpisow.
    """
    schedules = ScheduleRepo(db)
    entries = schedules.list_from(today)
    if not entries:
        return 0

    counts = OrderRepo(db).count_active_by_delivery_date([e.date for e in entries])
    fixed = 0
    for entry in entries:
        actual = counts.get(entry.date, 0)
        if entry.max_orders is not None and actual > entry.max_orders:
            logger.warning(f"Quota overshoot on {entry.date}: {actual}/{entry.max_orders}")
        if entry.current_orders != actual:
            logger.info(f"Schedule {entry.date}: current_orders {entry.current_orders} -> {actual}")
            schedules.set_current_orders(entry.id, actual)
            fixed += 1
    schedules.commit()
    return fixed


@celery_app.task(name="catering.tasks.quota.reconcile_quota_task")
def reconcile_quota_task():
    logger.info("Reconcile quota task started")

    db = SessionLocal()
    try:
        today = datetime.now(ZoneInfo(TIMEZONE)).date()
        fixed = reconcile_quota(db, today)
        logger.info(f"Reconcile quota task finished, {fixed} entries corrected")
        return fixed
    finally:
        db.close()
