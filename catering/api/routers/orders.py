# catering/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from catering.api.errors import to_http_exception
from catering.data.database import get_db
from catering.domain.errors import CateringError
from catering.domain.schemas import OrderCreate, OrderOut, OrderStatusUpdate
from catering.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamowienie na dana date dostawy.
    Dostepnosc daty sprawdzana ponownie po stronie serwera.
    """
    try:
        return svc.create_order(payload)
    except (PermissionError, CateringError) as e:
        raise to_http_exception(e)


@router.get("", response_model=List[OrderOut])
def list_orders(
    guardian_id: str = Query(..., min_length=1),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(guardian_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    guardian_id: str | None = Query(None),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegoly zamowienia (re-sync po zamknieciu okna bramki).
    """
    try:
        return svc.get_order(order_id, guardian_id)
    except (PermissionError, CateringError) as e:
        raise to_http_exception(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    svc: OrderService = Depends(get_service),
):
    """
    Reczna zmiana statusu przez operatora (przygotowanie, wydanie, anulowanie, zwrot).
    """
    try:
        return svc.update_status(order_id, payload.operator_id, payload.status, payload.payment_status)
    except (PermissionError, CateringError) as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
