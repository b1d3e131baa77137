# catering/services/order_service.py
from datetime import datetime, timezone
from typing import Callable

import requests
from sqlalchemy.orm import Session

from catering.data.models.order import OrderModel
from catering.data.models.order_item import OrderItemModel
from catering.domain import ids
from catering.domain.errors import (
    EligibilityError,
    OrderNotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from catering.domain.schemas import OrderCreate
from catering.domain.status import (
    OPERATOR_TARGETS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    apply_transition,
)
from catering.repos.order_repo import OrderRepo
from catering.repos.schedule_repo import ScheduleRepo
from catering.services import availability
from catering.services.catalog_client import CatalogClient
from catering.utils.logging import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Tworzenie zamowienia, odczyt (re-sync po zamknieciu okna platnosci)
    i reczne zmiany statusu przez operatora.
    """

    def __init__(
        self,
        db: Session,
        catalog_client: CatalogClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.schedules = ScheduleRepo(db)
        self.catalog_client = catalog_client or CatalogClient()
        self.clock = clock

    def _fetch(self, fetch, key, what: str) -> dict:
        try:
            return fetch(key)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise ValidationError(f"{what} {key} does not exist") from e
            raise ServiceUnavailableError(f"Catalog service error: {e}") from e
        except requests.RequestException as e:
            raise ServiceUnavailableError(f"Catalog service unavailable: {e}") from e

    def create_order(self, payload: OrderCreate) -> OrderModel:
        """
        Use Case: Tworzenie zamówienia.

        1. Snapshot dziecka (imie, klasa) i cen z katalogu
        2. Wiazace sprawdzenie dostepnosci daty (UI sprawdza tylko doradczo)
        3. Zapis zamowienia (pending, pending | pending_cash) z pozycjami
        4. Inkrementacja licznika current_orders (miekki limit)
        """
        menu_ids = [i.menu_item_id for i in payload.items]
        if len(menu_ids) != len(set(menu_ids)):
            raise ValidationError("Order contains duplicate menu items")

        child = self._fetch(self.catalog_client.fetch_child, payload.child_id, "Child")
        if str(child.get("guardian_id")) != payload.guardian_id:
            raise PermissionError("Child does not belong to this guardian")

        items = []
        for item_in in payload.items:
            pdata = self._fetch(self.catalog_client.fetch_menu_item, item_in.menu_item_id, "Menu item")
            try:
                price = int(pdata["price"])
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Catalog returned a malformed menu item {item_in.menu_item_id}: {pdata!r}")
                raise ServiceUnavailableError(
                    f"Catalog service returned an invalid price for menu item {item_in.menu_item_id}"
                ) from e
            if price < 0:
                raise ValidationError(f"Menu item {item_in.menu_item_id} has a negative price")
            items.append(
                OrderItemModel(
                    menu_item_id=str(item_in.menu_item_id),
                    name=pdata.get("name") or str(item_in.menu_item_id),
                    quantity=item_in.quantity,
                    price=price,
                )
            )

        entry = self.schedules.get_by_date(payload.delivery_date)
        verdict = availability.evaluate(payload.delivery_date, self.clock(), entry)
        if not verdict.is_available:
            logger.info(f"Order refused for {payload.delivery_date}: {verdict.status.value}")
            raise EligibilityError(verdict.reason)

        payment_status = (
            PaymentStatus.PENDING_CASH if payload.payment_method == PaymentMethod.CASH else PaymentStatus.PENDING
        )
        order = OrderModel(
            order_number=ids.new_order_number(),
            guardian_id=payload.guardian_id,
            child_id=str(payload.child_id),
            child_name=child.get("name"),
            child_class=child.get("class_name"),
            delivery_date=payload.delivery_date,
            status=OrderStatus.PENDING.value,
            payment_status=payment_status.value,
            payment_method=payload.payment_method.value,
            total_amount=sum(i.price * i.quantity for i in items),
            admin_fee=0,
            notes=payload.notes,
        )

        try:
            self.repo.add_order(order, items)
            # check i increment to dwa kroki, przekroczenie limitu jest tolerowane
            if self.schedules.increment_orders(payload.delivery_date):
                self.db.flush()
                if entry is not None:
                    self.db.refresh(entry)
                    if entry.max_orders is not None and entry.current_orders > entry.max_orders:
                        logger.warning(
                            f"Quota overshoot on {payload.delivery_date}: "
                            f"{entry.current_orders}/{entry.max_orders}"
                        )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} created for {payload.delivery_date} "
            f"({order.payment_status}, total={order.total_amount})"
        )
        return self.repo.refresh(order)

    def get_order(self, order_id: int, guardian_id: str | None = None) -> OrderModel:
        """
        Use Case: Pobranie zamówienia (Query). guardian_id=None -> widok operatora.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError([order_id])
        if guardian_id is not None and order.guardian_id != guardian_id:
            raise PermissionError("Not authorized to access this order")
        return order

    def list_orders(self, guardian_id: str) -> list[OrderModel]:
        return self.repo.list_for_guardian(guardian_id)

    def update_status(
        self,
        order_id: int,
        operator_id: str,
        new_status: OrderStatus | None = None,
        new_payment_status: PaymentStatus | None = None,
    ) -> OrderModel:
        """
        Use Case: Reczna zmiana statusu (operator).

        confirmed -> preparing -> ready -> delivered, anulowanie przed delivered,
        refund tylko dla anulowanego i oplaconego zamowienia.
        Potwierdzenie/oplacenie idzie wylacznie przez webhook albo kase.
        """
        if new_status is None and new_payment_status is None:
            raise ValidationError("Nothing to update")
        if new_status is not None and new_status not in OPERATOR_TARGETS:
            raise ValidationError(f"Status '{new_status.value}' cannot be set manually")
        if new_payment_status is not None and new_payment_status != PaymentStatus.REFUNDED:
            raise ValidationError(f"Payment status '{new_payment_status.value}' cannot be set manually")

        order = self.get_order(order_id)
        old = (order.status, order.payment_status)

        if apply_transition(order, new_status, new_payment_status):
            self.repo.commit()
            logger.info(
                f"Order {order.order_number} {old[0]}/{old[1]} -> "
                f"{order.status}/{order.payment_status} by operator {operator_id}"
            )
        return order
