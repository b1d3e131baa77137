# catering/services/payment_service.py
import uuid
from datetime import datetime, timezone
from typing import Callable

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catering.data.models.order import OrderModel
from catering.domain import ids
from catering.domain.errors import (
    EligibilityError,
    OrderNotFoundError,
    PartialWriteError,
    ServiceUnavailableError,
)
from catering.domain.schemas import CustomerDetails, PaymentOut
from catering.domain.status import OrderStatus, PaymentStatus
from catering.repos.order_repo import OrderRepo
from catering.repos.schedule_repo import ScheduleRepo
from catering.services import availability, fees
from catering.services.gateway_client import GatewayClient, line_item
from catering.services.lock_service import LockService
from catering.utils.settings import GATEWAY_ENABLED, PAYMENT_LOCK_TTL_SECONDS
from catering.utils.logging import get_logger

logger = get_logger(__name__)

FEE_ITEM_ID = "ADMIN_FEE"
FEE_ITEM_NAME = "Payment gateway fee"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_payable(order: OrderModel, entry, now: datetime) -> None:
    """
    Czy zamowienie mozna (jeszcze) oplacic przez bramke.
    Wolane zawsze po stronie serwera, nigdy nie ufamy kwalifikacji z klienta.
    """
    if order.payment_status == PaymentStatus.PAID.value:
        raise EligibilityError(f"Order {order.order_number} is already paid")
    if order.payment_status != PaymentStatus.PENDING.value:
        raise EligibilityError(
            f"Order {order.order_number} is not awaiting gateway payment ({order.payment_status})"
        )
    if order.status != OrderStatus.PENDING.value:
        raise EligibilityError(f"Order {order.order_number} is {order.status}")
    if availability.is_window_closed(order.delivery_date, now, entry):
        raise EligibilityError(f"Order {order.order_number} has expired: the ordering deadline has passed")


class PaymentLocks:
    """Locki redisowe na kilka zamowien naraz; zwalnia wszystko co zdobyl."""

    def __init__(self, lock_service: LockService, order_ids: list[int], ttl: int = PAYMENT_LOCK_TTL_SECONDS):
        self.lock_service = lock_service
        self.order_ids = sorted(order_ids)
        self.ttl = ttl
        self.owner = uuid.uuid4().hex
        self.held: list[int] = []

    def __enter__(self):
        try:
            for order_id in self.order_ids:
                if not self.lock_service.acquire_payment_lock(order_id, self.owner, self.ttl):
                    self.release()
                    raise EligibilityError(f"A payment for order {order_id} is already being started")
                self.held.append(order_id)
        except RedisError as e:
            self.release()
            raise ServiceUnavailableError(f"Payment lock unavailable: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def release(self):
        for order_id in self.held:
            try:
                self.lock_service.release_payment_lock(order_id, self.owner)
            except RedisError as e:
                # lock i tak wygasnie po ttl
                logger.warning(f"Failed to release payment lock for order {order_id}: {e}")
        self.held = []


class PaymentService:
    """
    Otwieranie transakcji w bramce dla jednego zamowienia.

    subtotal = total_amount - admin_fee (retry nie dolicza oplaty drugi raz),
    oplata z fees.fee(), token zapisywany na zamowieniu do ponownego uzycia.
    """

    def __init__(
        self,
        db: Session,
        gateway: GatewayClient | None = None,
        lock_service: LockService | None = None,
        fee_policy: fees.FeePolicy = fees.DEFAULT_POLICY,
        gateway_enabled: bool = GATEWAY_ENABLED,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.schedules = ScheduleRepo(db)
        self.gateway = gateway or GatewayClient()
        self.lock_service = lock_service or LockService()
        self.fee_policy = fee_policy
        self.gateway_enabled = gateway_enabled
        self.clock = clock

    def _reused(self, order: OrderModel) -> PaymentOut:
        # token z batcha -> bramka pobierze kwote za wszystkie zamowienia z tej transakcji
        members = self.repo.get_by_gateway_order_id(order.gateway_order_id) or [order]
        logger.info(
            f"Reusing gateway token for order {order.order_number} ({order.gateway_order_id}, "
            f"{len(members)} order(s))"
        )
        return PaymentOut(
            gateway_order_id=order.gateway_order_id,
            token=order.gateway_token,
            order_ids=[o.id for o in members],
            subtotal=sum(o.subtotal for o in members),
            admin_fee=sum(o.admin_fee for o in members),
            total_amount=sum(o.total_amount for o in members),
            reused=True,
        )

    def initiate(self, order_id: int, guardian_id: str, customer: CustomerDetails) -> PaymentOut:
        """
        Use Case: Platnosc (lub ponowna platnosc) za jedno zamowienie.

        Blad bramki zostawia zamowienie bez zmian (pending/pending), mozna ponowic.
        """
        if not self.gateway_enabled:
            raise EligibilityError("Online payment is currently disabled")

        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError([order_id])
        if order.guardian_id != guardian_id:
            raise PermissionError("Not authorized to pay for this order")

        ensure_payable(order, self.schedules.get_by_date(order.delivery_date), self.clock())

        # token juz jest -> nie otwieramy drugiej transakcji
        if order.gateway_token:
            return self._reused(order)

        with PaymentLocks(self.lock_service, [order.id]):
            self.repo.refresh(order)
            if order.gateway_token:
                return self._reused(order)

            subtotal = order.subtotal
            admin_fee = fees.fee(subtotal, self.fee_policy)

            item_details = [line_item(i.menu_item_id, i.price, i.quantity, i.name) for i in order.items]
            if sum(i["price"] * i["quantity"] for i in item_details) != subtotal:
                # pozycje nie sumuja sie do subtotalu, bramka by odrzucila
                item_details = [line_item(order.order_number, subtotal, 1, f"Order {order.order_number}")]
            if admin_fee > 0:
                item_details.append(line_item(FEE_ITEM_ID, admin_fee, 1, FEE_ITEM_NAME))

            gateway_order_id = ids.new_gateway_order_id()
            txn = self.gateway.create_transaction(
                gateway_order_id,
                subtotal + admin_fee,
                customer.model_dump(exclude_none=True),
                item_details,
            )

            order.gateway_order_id = gateway_order_id
            order.gateway_token = txn.token
            order.admin_fee = admin_fee
            order.total_amount = subtotal + admin_fee
            try:
                self.repo.commit()
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(
                    f"PARTIAL WRITE: gateway transaction {gateway_order_id} opened for order "
                    f"{order.order_number} but the token could not be stored: {e}"
                )
                raise PartialWriteError(
                    "Gateway transaction opened but not recorded; manual reconciliation required",
                    gateway_order_id,
                ) from e

        logger.info(
            f"Gateway transaction {gateway_order_id} opened for order {order.order_number} "
            f"(subtotal={subtotal}, fee={admin_fee})"
        )
        return PaymentOut(
            gateway_order_id=gateway_order_id,
            token=txn.token,
            redirect_url=txn.redirect_url,
            order_ids=[order.id],
            subtotal=subtotal,
            admin_fee=admin_fee,
            total_amount=subtotal + admin_fee,
        )
