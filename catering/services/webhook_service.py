# catering/services/webhook_service.py
import hashlib
import hmac
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from catering.data.models.order import OrderModel
from catering.data.models.payment import PaymentModel
from catering.domain.errors import CateringError, IllegalTransitionError, SignatureError
from catering.domain.schemas import GatewayNotification
from catering.domain.status import OrderStatus, PaymentMethod, PaymentStatus, apply_transition
from catering.repos.order_repo import OrderRepo
from catering.repos.payment_repo import PaymentRepo
from catering.services import fees
from catering.services.notification_service import NotificationService
from catering.utils.settings import GATEWAY_SERVER_KEY
from catering.utils.logging import get_logger

logger = get_logger(__name__)

SETTLED = {"capture", "settlement"}
FAILED = {"deny", "cancel", "expire", "failure"}
PENDING = {"pending"}


def expected_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(notification: GatewayNotification, server_key: str) -> None:
    """Porownanie w stalym czasie; blad nie mowi ktore pole sie nie zgadza."""
    expected = expected_signature(
        notification.order_id,
        notification.status_code,
        notification.gross_amount,
        server_key,
    )
    if not hmac.compare_digest(expected, (notification.signature_key or "").lower()):
        raise SignatureError()


def _amount(gross_amount: str) -> int | None:
    try:
        return int(Decimal(gross_amount))
    except (InvalidOperation, ValueError):
        return None


class WebhookService:
    """
    Uzgadnianie stanu zamowien z callbackiem bramki.

    Jeden callback moze dotyczyc kilku zamowien (batch -> wspolny gateway_order_id).
    Replay callbacka nic nie zmienia (idempotentne).
    """

    def __init__(self, db: Session, notifier=None, server_key: str = GATEWAY_SERVER_KEY):
        self.db = db
        self.repo = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.notifier = notifier or NotificationService()
        self.server_key = server_key

    def handle(self, notification: GatewayNotification) -> dict:
        if not self.server_key:
            raise CateringError("Gateway server key is not configured")
        verify_signature(notification, self.server_key)

        gateway_order_id = notification.order_id
        transaction_status = notification.transaction_status.lower()
        fraud_status = (notification.fraud_status or "").lower()

        orders = self.repo.get_by_gateway_order_id(gateway_order_id, include_superseded=True)
        if not orders:
            # nie zwracamy bledu, bramka i tak by ponawiala bez konca
            logger.error(f"Webhook for unknown gateway order {gateway_order_id} ({transaction_status})")
            return {"gateway_order_id": gateway_order_id, "matched": 0, "updated": 0}

        gross = _amount(notification.gross_amount)
        expected_total = sum(o.total_amount for o in orders)
        if gross is None or gross == expected_total:
            amounts = [o.total_amount for o in orders]
        else:
            logger.warning(
                f"Webhook {gateway_order_id}: gross_amount {notification.gross_amount} "
                f"does not match orders total {expected_total}"
            )
            # zapisujemy to, co bramka faktycznie pobrala, w proporcji do subtotali
            amounts = fees.split_amount(gross, [o.subtotal for o in orders], "proportional")

        if transaction_status == "capture" and fraud_status == "challenge":
            logger.warning(f"Webhook {gateway_order_id}: capture challenged by fraud detection, waiting")
            transaction_status = "pending"

        confirmed: list[OrderModel] = []
        updated = 0
        for order, amount in zip(orders, amounts):
            superseded = order.gateway_order_id != gateway_order_id
            if superseded:
                logger.warning(
                    f"Webhook {gateway_order_id} ({transaction_status}) concerns order {order.order_number}, "
                    f"whose current gateway transaction is {order.gateway_order_id}"
                )
            elif notification.transaction_id:
                order.gateway_transaction_id = notification.transaction_id

            if transaction_status in SETTLED:
                changed = self._settle(order, notification.transaction_id, amount)
                if changed and order.status == OrderStatus.CONFIRMED.value:
                    confirmed.append(order)
            elif transaction_status in FAILED:
                # zastapiona transakcja wygasa, ale zamowienie ma nowa, zywa
                changed = False if superseded else self._fail(order, transaction_status)
            elif transaction_status in PENDING:
                changed = False
            else:
                logger.warning(f"Webhook {gateway_order_id}: unknown transaction status '{transaction_status}'")
                changed = False
            updated += int(changed)

        try:
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Webhook {gateway_order_id} ({transaction_status}): "
            f"{updated}/{len(orders)} orders updated"
        )

        for order in confirmed:
            try:
                self.notifier.send_payment_confirmed(order.guardian_id, order.order_number)
            except Exception as e:
                logger.warning(f"Failed to queue notification for order {order.order_number}: {e}")

        return {"gateway_order_id": gateway_order_id, "matched": len(orders), "updated": updated}

    def _settle(self, order: OrderModel, transaction_id: str | None, amount: int) -> bool:
        if transaction_id and self.payments.has_payment(order.id, transaction_id):
            # replay
            return False

        changed = False
        if order.payment_status == PaymentStatus.PAID.value:
            earlier = [p for p in self.payments.payments_for_order(order.id) if p.transaction_id != transaction_id]
            if order.payment_method == PaymentMethod.CASH.value or earlier:
                logger.error(
                    f"Order {order.order_number} collected twice: gateway transaction {transaction_id} "
                    f"({amount}) settled after payment via {order.payment_method}; refund required"
                )
        else:
            new_status = OrderStatus.CONFIRMED if order.status == OrderStatus.PENDING.value else None
            try:
                changed = apply_transition(order, new_status, PaymentStatus.PAID)
            except IllegalTransitionError as e:
                logger.error(
                    f"Order {order.order_number} paid at gateway but cannot be marked paid "
                    f"({order.status}/{order.payment_status}): {e.reason}. Manual reconciliation required"
                )
            else:
                if order.status == OrderStatus.CANCELLED.value:
                    logger.error(
                        f"Order {order.order_number} was paid after cancellation; refund or reinstate manually"
                    )

        # rekord platnosci nawet gdy przejscie bylo nielegalne, pieniadze wplynely
        if transaction_id:
            self.payments.add_payment(
                PaymentModel(
                    order_id=order.id,
                    payment_method=PaymentMethod.QRIS.value,
                    amount=amount,
                    transaction_id=transaction_id,
                    status=order.payment_status,
                )
            )
        return changed

    def _fail(self, order: OrderModel, transaction_status: str) -> bool:
        if order.payment_status == PaymentStatus.PAID.value:
            logger.warning(
                f"Ignoring '{transaction_status}' for already paid order {order.order_number}"
            )
            return False
        if order.payment_status == PaymentStatus.FAILED.value:
            return False
        try:
            return apply_transition(order, OrderStatus.CANCELLED, PaymentStatus.FAILED)
        except IllegalTransitionError as e:
            logger.error(f"Order {order.order_number}: cannot apply '{transaction_status}': {e.reason}")
            return False
