# catering/api/routers/cashier.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from catering.api.errors import to_http_exception
from catering.data.database import get_db
from catering.domain.errors import CateringError
from catering.domain.schemas import CashSettlementIn, CashSettlementOut
from catering.services.cash_service import CashService

router = APIRouter(prefix="/cashier", tags=["cashier"])


def get_service(db: Session = Depends(get_db)) -> CashService:
    return CashService(db)


@router.post("/settlements", response_model=CashSettlementOut, status_code=201)
def settle_cash(
    payload: CashSettlementIn,
    svc: CashService = Depends(get_service),
):
    """
    Platnosc gotowka przy kasie, jedno lub kilka zamowien.
    Zwraca reszte i dane do paragonu.
    """
    try:
        return svc.settle(
            payload.order_ids,
            payload.amount_received,
            payload.operator_id,
            payload.operator_name,
            payload.note,
        )
    except CateringError as e:
        raise to_http_exception(e)
