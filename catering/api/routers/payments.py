# catering/api/routers/payments.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catering.api.errors import to_http_exception
from catering.data.database import get_db
from catering.domain.errors import CateringError, SignatureError
from catering.domain.schemas import BatchPaymentIn, GatewayNotification, PaymentOut, SinglePaymentIn
from catering.services.batch_payment_service import BatchPaymentService
from catering.services.payment_service import PaymentService
from catering.services.webhook_service import WebhookService
from catering.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_batch_service(db: Session = Depends(get_db)) -> BatchPaymentService:
    return BatchPaymentService(db)


def get_webhook_service(db: Session = Depends(get_db)) -> WebhookService:
    return WebhookService(db)


@router.post("/orders/{order_id}", response_model=PaymentOut)
def pay_order(
    order_id: int,
    payload: SinglePaymentIn,
    svc: PaymentService = Depends(get_payment_service),
):
    """
    Otwiera (albo zwraca istniejaca) transakcje w bramce dla jednego zamowienia.
    """
    try:
        return svc.initiate(order_id, payload.guardian_id, payload.customer)
    except (PermissionError, CateringError) as e:
        raise to_http_exception(e)


@router.post("/batch", response_model=PaymentOut)
def pay_batch(
    payload: BatchPaymentIn,
    svc: BatchPaymentService = Depends(get_batch_service),
):
    """
    Jedna transakcja w bramce za kilka zamowien.
    """
    try:
        return svc.initiate(payload.guardian_id, payload.order_ids, payload.customer, payload.batch_id)
    except (PermissionError, CateringError) as e:
        raise to_http_exception(e)


@router.post("/webhook")
def gateway_webhook(
    notification: GatewayNotification,
    svc: WebhookService = Depends(get_webhook_service),
):
    """
    Callback z bramki. 200 = przetworzone (albo nie do naprawienia),
    400 = zly podpis, 500 = blad bazy, bramka ponowi.
    """
    try:
        return svc.handle(notification)
    except SQLAlchemyError as e:
        logger.error(f"Webhook {notification.order_id} failed on database write: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    except SignatureError as e:
        logger.error(f"Webhook {notification.order_id}: signature verification failed")
        raise to_http_exception(e)
    except CateringError as e:
        raise to_http_exception(e)
