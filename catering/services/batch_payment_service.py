# catering/services/batch_payment_service.py
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catering.domain import ids
from catering.domain.errors import EligibilityError, OrderNotFoundError, PartialWriteError, ValidationError
from catering.domain.schemas import CustomerDetails, PaymentOut
from catering.repos.order_repo import OrderRepo
from catering.repos.schedule_repo import ScheduleRepo
from catering.services import fees
from catering.services.gateway_client import GatewayClient, line_item
from catering.services.lock_service import LockService
from catering.services.payment_service import (
    FEE_ITEM_ID,
    FEE_ITEM_NAME,
    PaymentLocks,
    ensure_payable,
    utc_now,
)
from catering.utils.settings import BATCH_FEE_SPLIT, GATEWAY_ENABLED
from catering.utils.logging import get_logger

logger = get_logger(__name__)


class BatchPaymentService:
    """
    Jedna transakcja w bramce za kilka zamowien jednego opiekuna.

    Oplata liczona raz od lacznego subtotalu, potem rozkladana z powrotem
    na zamowienia (proporcjonalnie albo po rowno, BATCH_FEE_SPLIT).
    """

    def __init__(
        self,
        db: Session,
        gateway: GatewayClient | None = None,
        lock_service: LockService | None = None,
        fee_policy: fees.FeePolicy = fees.DEFAULT_POLICY,
        split_mode: str = BATCH_FEE_SPLIT,
        gateway_enabled: bool = GATEWAY_ENABLED,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.schedules = ScheduleRepo(db)
        self.gateway = gateway or GatewayClient()
        self.lock_service = lock_service or LockService()
        self.fee_policy = fee_policy
        self.split_mode = split_mode
        self.gateway_enabled = gateway_enabled
        self.clock = clock

    def _validated_orders(self, guardian_id: str, order_ids: list[int]):
        orders = self.repo.get_orders(order_ids)
        found = {o.id for o in orders}
        missing = [i for i in order_ids if i not in found]
        if missing:
            raise OrderNotFoundError(missing)

        if any(o.guardian_id != guardian_id for o in orders):
            raise PermissionError("Some of the selected orders do not belong to this account")

        now = self.clock()
        for order in orders:
            ensure_payable(order, self.schedules.get_by_date(order.delivery_date), now)
        return orders

    def _existing_transaction(self, orders) -> PaymentOut | None:
        gateway_ids = {o.gateway_order_id for o in orders}
        tokens = {o.gateway_token for o in orders}
        if len(gateway_ids) != 1 or len(tokens) != 1 or None in gateway_ids or None in tokens:
            return None

        gateway_order_id = gateway_ids.pop()
        # ta sama transakcja musi obejmowac dokladnie ten zestaw zamowien
        sharing = {o.id for o in self.repo.get_by_gateway_order_id(gateway_order_id)}
        if sharing != {o.id for o in orders}:
            return None

        logger.info(f"Reusing batch gateway transaction {gateway_order_id} for orders {sorted(sharing)}")
        return PaymentOut(
            gateway_order_id=gateway_order_id,
            token=tokens.pop(),
            order_ids=[o.id for o in orders],
            subtotal=sum(o.subtotal for o in orders),
            admin_fee=sum(o.admin_fee for o in orders),
            total_amount=sum(o.total_amount for o in orders),
            reused=True,
        )

    def initiate(
        self,
        guardian_id: str,
        order_ids: list[int],
        customer: CustomerDetails,
        batch_id: str | None = None,
    ) -> PaymentOut:
        """
        Use Case: Platnosc zbiorcza.

        1. Ponowna walidacja kazdego zamowienia po stronie serwera (cala paczka albo nic)
        2. Laczny subtotal = suma (total_amount - admin_fee)
        3. Jedna oplata od lacznego subtotalu
        4. Jedna transakcja w bramce: pozycja per zamowienie + pozycja oplaty
        5. Ten sam gateway_order_id i token na kazdym zamowieniu, rozklad oplaty
        6. Wiersz batch_orders per zamowienie (audyt i poprzednia transakcja zamowienia)
        """
        if not self.gateway_enabled:
            raise EligibilityError("Online payment is currently disabled")
        if not order_ids:
            raise ValidationError("No orders selected for batch payment")
        if len(set(order_ids)) != len(order_ids):
            raise ValidationError("Duplicate order ids in batch")

        orders = self._validated_orders(guardian_id, order_ids)

        reused = self._existing_transaction(orders)
        if reused:
            return reused

        batch_id = batch_id or ids.new_batch_id()

        with PaymentLocks(self.lock_service, [o.id for o in orders]):
            for order in orders:
                self.repo.refresh(order)
            # ktos mogl w miedzyczasie oplacic albo otworzyc ta sama paczke
            orders = self._validated_orders(guardian_id, order_ids)
            reused = self._existing_transaction(orders)
            if reused:
                return reused

            subtotals = [o.subtotal for o in orders]
            combined_subtotal = sum(subtotals)
            admin_fee = fees.fee(combined_subtotal, self.fee_policy)

            item_details = [
                line_item(o.order_number, s, 1, f"Order {o.child_name or f'#{idx + 1}'}")
                for idx, (o, s) in enumerate(zip(orders, subtotals))
            ]
            if admin_fee > 0:
                item_details.append(line_item(FEE_ITEM_ID, admin_fee, 1, FEE_ITEM_NAME))

            gateway_order_id = ids.new_batch_gateway_order_id()
            txn = self.gateway.create_transaction(
                gateway_order_id,
                combined_subtotal + admin_fee,
                customer.model_dump(exclude_none=True),
                item_details,
            )

            fee_shares = fees.split_amount(admin_fee, subtotals, self.split_mode)
            # stare transakcje zostaja rozpoznawalne dla webhooka
            superseded = {o.id: o.gateway_order_id for o in orders if o.gateway_order_id}
            for order, subtotal, fee_share in zip(orders, subtotals, fee_shares):
                if order.gateway_token:
                    logger.warning(
                        f"Order {order.order_number}: gateway transaction {order.gateway_order_id} "
                        f"superseded by batch {gateway_order_id}"
                    )
                order.gateway_order_id = gateway_order_id
                order.gateway_token = txn.token
                order.admin_fee = fee_share
                order.total_amount = subtotal + fee_share

            self.repo.add_batch_membership(batch_id, gateway_order_id, [o.id for o in orders], superseded)
            try:
                self.repo.commit()
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(
                    f"PARTIAL WRITE: batch gateway transaction {gateway_order_id} (batch {batch_id}) "
                    f"opened for orders {order_ids} but could not be recorded: {e}"
                )
                raise PartialWriteError(
                    "Gateway transaction opened but not recorded; manual reconciliation required",
                    gateway_order_id,
                ) from e

        logger.info(
            f"Batch {batch_id}: gateway transaction {gateway_order_id} opened for {len(orders)} orders "
            f"(subtotal={combined_subtotal}, fee={admin_fee}, split={self.split_mode})"
        )
        return PaymentOut(
            gateway_order_id=gateway_order_id,
            token=txn.token,
            redirect_url=txn.redirect_url,
            order_ids=[o.id for o in orders],
            subtotal=combined_subtotal,
            admin_fee=admin_fee,
            total_amount=combined_subtotal + admin_fee,
            batch_id=batch_id,
        )
