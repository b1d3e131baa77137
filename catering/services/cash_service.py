# catering/services/cash_service.py
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from catering.data.models.cash_payment import CashPaymentModel
from catering.data.models.payment import PaymentModel
from catering.domain import ids
from catering.domain.errors import (
    EligibilityError,
    InsufficientCashError,
    OrderNotFoundError,
    ValidationError,
)
from catering.domain.schemas import CashSettlementOut, ReceiptLine
from catering.domain.status import OrderStatus, PaymentMethod, PaymentStatus, apply_transition
from catering.repos.order_repo import OrderRepo
from catering.repos.payment_repo import PaymentRepo
from catering.services.notification_service import NotificationService
from catering.utils.logging import get_logger

logger = get_logger(__name__)

CASH_SETTLEABLE = {PaymentStatus.PENDING.value, PaymentStatus.PENDING_CASH.value}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CashService:
    """
    Rozliczenie gotowkowe przy kasie (jedno zamowienie albo kilka naraz).

    Gotowka nie ma oplaty bramki: kwota = total_amount - admin_fee,
    a admin_fee jest zerowany. Wszystko (status, payments, cash_payments)
    w jednej transakcji bazy.
    """

    def __init__(self, db: Session, notifier=None, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.repo = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.notifier = notifier or NotificationService()
        self.clock = clock

    def settle(
        self,
        order_ids: list[int],
        amount_received: int,
        operator_id: str,
        operator_name: str | None = None,
        note: str | None = None,
    ) -> CashSettlementOut:
        """
        Use Case: Platnosc gotowka.

        amount_received < amount_due -> InsufficientCashError, nic nie zapisujemy.
        Dla batcha kazde zamowienie dostaje wpis z received = swoja kwota i change = 0,
        reszta jest liczona raz dla calej paczki.
        """
        if not order_ids:
            raise ValidationError("No orders selected for cash payment")
        if len(set(order_ids)) != len(order_ids):
            raise ValidationError("Duplicate order ids in cash payment")
        if amount_received < 0:
            raise ValidationError("Amount received cannot be negative")

        orders = self.repo.get_orders(order_ids)
        found = {o.id for o in orders}
        missing = [i for i in order_ids if i not in found]
        if missing:
            raise OrderNotFoundError(missing)

        for order in orders:
            if order.payment_status == PaymentStatus.PAID.value:
                raise EligibilityError(f"Order {order.order_number} is already paid")
            if order.status != OrderStatus.PENDING.value or order.payment_status not in CASH_SETTLEABLE:
                raise EligibilityError(
                    f"Order {order.order_number} cannot be paid in cash ({order.status}/{order.payment_status})"
                )

        amounts = [o.subtotal for o in orders]
        amount_due = sum(amounts)
        if amount_received < amount_due:
            raise InsufficientCashError(amount_due, amount_received)
        change = amount_received - amount_due

        is_batch = len(orders) > 1
        batch_id = ids.new_cash_batch_id() if is_batch else None
        if is_batch:
            notes = f"Batch Payment ID: {batch_id}. {note or f'Batch payment for {len(orders)} orders'}"
        else:
            notes = note

        settled_at = self.clock()
        lines = []
        try:
            for order, amount in zip(orders, amounts):
                if order.gateway_token:
                    logger.warning(
                        f"Order {order.order_number} settled in cash while gateway transaction "
                        f"{order.gateway_order_id} is still open"
                    )
                order.payment_method = PaymentMethod.CASH.value
                order.admin_fee = 0
                order.total_amount = amount
                apply_transition(order, OrderStatus.CONFIRMED, PaymentStatus.PAID)

                transaction_id = ids.new_cash_transaction_id(order.id)
                self.payments.add_payment(
                    PaymentModel(
                        order_id=order.id,
                        payment_method=PaymentMethod.CASH.value,
                        amount=amount,
                        transaction_id=transaction_id,
                        status=PaymentStatus.PAID.value,
                        created_at=settled_at,
                    )
                )
                self.payments.add_cash_payment(
                    CashPaymentModel(
                        order_id=order.id,
                        amount=amount,
                        received_amount=amount if is_batch else amount_received,
                        change_amount=0 if is_batch else change,
                        cashier_id=operator_id,
                        cashier_name=operator_name,
                        notes=notes,
                        created_at=settled_at,
                    )
                )
                lines.append(
                    ReceiptLine(
                        order_id=order.id,
                        order_number=order.order_number,
                        child_name=order.child_name,
                        child_class=order.child_class,
                        delivery_date=order.delivery_date,
                        amount=amount,
                        transaction_id=transaction_id,
                    )
                )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Cash payment by operator {operator_id}: orders {order_ids}, "
            f"due={amount_due}, received={amount_received}, change={change}"
            + (f", batch {batch_id}" if batch_id else "")
        )

        for order in orders:
            try:
                self.notifier.send_payment_confirmed(order.guardian_id, order.order_number)
            except Exception as e:
                logger.warning(f"Failed to queue notification for order {order.order_number}: {e}")

        return CashSettlementOut(
            change=change,
            amount_due=amount_due,
            amount_received=amount_received,
            operator_id=operator_id,
            operator_name=operator_name,
            batch_id=batch_id,
            settled_at=settled_at,
            lines=lines,
        )
