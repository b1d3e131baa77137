# catering/domain/errors.py
"""
Wyjatki domenowe dla rozliczania zamowien.

Mapowanie na HTTP odbywa sie w routerach, tutaj tylko semantyka.
"""


class CateringError(Exception):
    """Base class for order/payment reconciliation errors."""


class ValidationError(CateringError, ValueError):
    """Bad input shape; raised before any side effect."""


class OrderNotFoundError(ValidationError):
    def __init__(self, order_ids):
        self.order_ids = list(order_ids)
        super().__init__(f"Order(s) not found: {', '.join(str(i) for i in self.order_ids)}")


class InsufficientCashError(ValidationError):
    def __init__(self, amount_due: int, amount_received: int):
        self.amount_due = amount_due
        self.amount_received = amount_received
        self.shortfall = amount_due - amount_received
        super().__init__(f"Amount received is short by {self.shortfall}")


class EligibilityError(CateringError):
    """Date closed/expired/full or order no longer payable; no partial state."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class IllegalTransitionError(EligibilityError):
    pass


class GatewayError(CateringError):
    """Transport failure or rejection from the payment gateway. Order left retryable."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SignatureError(CateringError):
    """Webhook signature mismatch. Message never says which part was wrong."""

    def __init__(self):
        super().__init__("Invalid signature")


class PartialWriteError(CateringError):
    """An external side effect happened but the local write did not; needs manual reconciliation."""

    def __init__(self, message: str, gateway_order_id: str | None = None):
        self.gateway_order_id = gateway_order_id
        super().__init__(message)


class ServiceUnavailableError(CateringError):
    """Catalog/roster service (or Redis) could not be reached."""
