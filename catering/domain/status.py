# catering/domain/status.py
"""
Statusy zamowienia i platnosci jako zamkniete typy.

Jedyne miejsce, ktore zmienia order.status / order.payment_status,
to apply_transition - call site'y nie pisza stringow bezposrednio.
"""
from enum import Enum

from catering.domain.errors import IllegalTransitionError


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PENDING_CASH = "pending_cash"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    QRIS = "qris"
    CASH = "cash"


ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PENDING_CASH: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

# statusy ustawiane recznie przez operatora (poza flow platnosci)
OPERATOR_TARGETS = {
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}


def check_transition(
    status: OrderStatus,
    payment_status: PaymentStatus,
    new_status: OrderStatus | None = None,
    new_payment_status: PaymentStatus | None = None,
) -> tuple[bool, str]:
    """
    Validate a combined (status, payment_status) move.

    Returns:
        Tuple of (is_valid, error_message). A move onto the current value is
        always valid, so re-applying the same target is a no-op.
    """
    target_status = new_status or status
    target_payment = new_payment_status or payment_status

    if target_status != status and target_status not in ORDER_TRANSITIONS[status]:
        return False, f"Invalid status transition: {status.value} -> {target_status.value}"

    if target_payment != payment_status and target_payment not in PAYMENT_TRANSITIONS[payment_status]:
        return False, (
            f"Invalid payment status transition: {payment_status.value} -> {target_payment.value}"
        )

    # pending -> confirmed tylko razem z oplaceniem
    if status == OrderStatus.PENDING and target_status == OrderStatus.CONFIRMED:
        if target_payment != PaymentStatus.PAID:
            return False, "Order can only be confirmed once it is paid"

    # refund tylko dla anulowanego zamowienia
    if target_payment == PaymentStatus.REFUNDED and payment_status != PaymentStatus.REFUNDED:
        if target_status != OrderStatus.CANCELLED:
            return False, "Only cancelled orders can be refunded"

    return True, ""


def apply_transition(
    order,
    new_status: OrderStatus | None = None,
    new_payment_status: PaymentStatus | None = None,
) -> bool:
    """
    Apply a transition to an order row, or raise IllegalTransitionError.

    Returns True if anything changed.
    """
    status = OrderStatus(order.status)
    payment_status = PaymentStatus(order.payment_status)

    ok, message = check_transition(status, payment_status, new_status, new_payment_status)
    if not ok:
        raise IllegalTransitionError(message)

    changed = False
    if new_status is not None and new_status != status:
        order.status = new_status.value
        changed = True
    if new_payment_status is not None and new_payment_status != payment_status:
        order.payment_status = new_payment_status.value
        changed = True
    return changed
