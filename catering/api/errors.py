# catering/api/errors.py
from fastapi import HTTPException

from catering.domain.errors import (
    EligibilityError,
    GatewayError,
    InsufficientCashError,
    OrderNotFoundError,
    PartialWriteError,
    ServiceUnavailableError,
    SignatureError,
    ValidationError,
)


def to_http_exception(e: Exception) -> HTTPException:
    """Wyjatek domenowy -> HTTPException. Kolejnosc ma znaczenie (podklasy najpierw)."""
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, OrderNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InsufficientCashError):
        return HTTPException(
            status_code=400,
            detail={
                "message": str(e),
                "amount_due": e.amount_due,
                "amount_received": e.amount_received,
                "shortfall": e.shortfall,
            },
        )
    if isinstance(e, SignatureError):
        return HTTPException(status_code=400, detail="Invalid signature")
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, EligibilityError):
        return HTTPException(status_code=409, detail=e.reason)
    if isinstance(e, GatewayError):
        return HTTPException(status_code=502, detail=f"Payment gateway error: {e}")
    if isinstance(e, ServiceUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, PartialWriteError):
        return HTTPException(
            status_code=500,
            detail={"message": str(e), "gateway_order_id": e.gateway_order_id},
        )
    return HTTPException(status_code=500, detail="Internal error")
