# catering/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from catering.data.models.payment import PaymentModel
from catering.data.models.cash_payment import CashPaymentModel


class PaymentRepo:
    """Append-only: platnosci i wpisy kasowe nigdy nie sa aktualizowane."""

    def __init__(self, db: Session):
        self.db = db

    def has_payment(self, order_id: int, transaction_id: str) -> bool:
        return self.db.execute(
            select(PaymentModel.id).where(
                PaymentModel.order_id == order_id,
                PaymentModel.transaction_id == transaction_id,
            )
        ).first() is not None

    def add_payment(self, payment: PaymentModel) -> None:
        self.db.add(payment)

    def add_cash_payment(self, cash_payment: CashPaymentModel) -> None:
        self.db.add(cash_payment)

    def payments_for_order(self, order_id: int) -> list[PaymentModel]:
        return list(
            self.db.execute(
                select(PaymentModel).where(PaymentModel.order_id == order_id).order_by(PaymentModel.id)
            ).scalars().all()
        )

    def cash_payments_for_order(self, order_id: int) -> list[CashPaymentModel]:
        return list(
            self.db.execute(
                select(CashPaymentModel)
                .where(CashPaymentModel.order_id == order_id)
                .order_by(CashPaymentModel.id)
            ).scalars().all()
        )
