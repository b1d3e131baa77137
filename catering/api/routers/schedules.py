# catering/api/routers/schedules.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from catering.api.errors import to_http_exception
from catering.data.database import get_db
from catering.domain.errors import CateringError
from catering.domain.schemas import AvailabilityOut, ScheduleIn, ScheduleOut
from catering.services.schedule_service import ScheduleService

router = APIRouter(prefix="/schedules", tags=["schedules"])


def get_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


@router.get("", response_model=List[ScheduleOut])
def list_schedules(
    start: date = Query(...),
    end: date = Query(...),
    svc: ScheduleService = Depends(get_service),
):
    try:
        return svc.list_entries(start, end)
    except CateringError as e:
        raise to_http_exception(e)


@router.get("/availability", response_model=List[AvailabilityOut])
def availability_calendar(
    start: date = Query(...),
    end: date = Query(...),
    svc: ScheduleService = Depends(get_service),
):
    """
    Kalendarz dostepnosci dla UI (tylko doradczo).
    """
    try:
        days = svc.availability_range(start, end)
    except CateringError as e:
        raise to_http_exception(e)
    return [AvailabilityOut(date=d.date, status=d.status.value, reason=d.reason) for d in days]


@router.put("/{day}", response_model=ScheduleOut)
def upsert_schedule(
    day: date,
    payload: ScheduleIn,
    svc: ScheduleService = Depends(get_service),
):
    """
    Ustawia blokade, limit i cutoff dla daty (current_orders bez zmian).
    """
    try:
        return svc.upsert(day, payload)
    except CateringError as e:
        raise to_http_exception(e)
