# catering/repos/order_repo.py
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from catering.data.models.order import OrderModel
from catering.data.models.order_item import OrderItemModel
from catering.data.models.batch_order import BatchOrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        for item in items:
            item.order_id = order.id
            self.db.add(item)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_orders(self, order_ids: list[int]) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(OrderModel.id.in_(order_ids)).order_by(OrderModel.id)
            ).scalars().all()
        )

    def list_for_guardian(self, guardian_id: str) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.guardian_id == guardian_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def get_by_gateway_order_id(self, gateway_order_id: str, include_superseded: bool = False) -> list[OrderModel]:
        """
        include_superseded=True: rowniez zamowienia, ktorych transakcja zostala
        zastapiona batchem (stara transakcja w bramce jest dalej placalna).
        """
        condition = OrderModel.gateway_order_id == gateway_order_id
        if include_superseded:
            superseded = select(BatchOrderModel.order_id).where(
                BatchOrderModel.superseded_gateway_order_id == gateway_order_id
            )
            condition = or_(condition, OrderModel.id.in_(superseded))
        return list(
            self.db.execute(
                select(OrderModel).where(condition).order_by(OrderModel.id)
            ).scalars().all()
        )

    def add_batch_membership(
        self,
        batch_id: str,
        gateway_order_id: str,
        order_ids: list[int],
        superseded: dict[int, str] | None = None,
    ) -> None:
        superseded = superseded or {}
        for order_id in order_ids:
            self.db.add(
                BatchOrderModel(
                    batch_id=batch_id,
                    order_id=order_id,
                    gateway_order_id=gateway_order_id,
                    superseded_gateway_order_id=superseded.get(order_id),
                )
            )

    def count_active_by_delivery_date(self, dates: list) -> dict:
        #zamowienia nieanulowane per data dostawy
        rows = self.db.execute(
            select(OrderModel.delivery_date, func.count(OrderModel.id))
            .where(OrderModel.delivery_date.in_(dates), OrderModel.status != "cancelled")
            .group_by(OrderModel.delivery_date)
        ).all()
        return {d: n for d, n in rows}

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order
