from datetime import datetime, timezone

from sqlalchemy import Column, Integer, BigInteger, ForeignKey, String, DateTime, UniqueConstraint

from catering.data.database import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    amount = Column(BigInteger, nullable=False)
    transaction_id = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # replay webhooka nie dopisze drugiego wiersza
    __table_args__ = (UniqueConstraint("order_id", "transaction_id", name="u_payment_order_txn"),)
