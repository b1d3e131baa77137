from datetime import datetime, timezone

from sqlalchemy import Column, Integer, BigInteger, ForeignKey, String, DateTime, Text

from catering.data.database import Base


class CashPaymentModel(Base):
    __tablename__ = "cash_payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    received_amount = Column(BigInteger, nullable=False)
    change_amount = Column(BigInteger, nullable=False, default=0)
    cashier_id = Column(String(64), nullable=False)
    cashier_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
