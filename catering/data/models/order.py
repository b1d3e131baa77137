from datetime import datetime, timezone

from sqlalchemy import Column, Integer, BigInteger, String, Date, DateTime, Text
from sqlalchemy.orm import relationship

from catering.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(64), nullable=False, unique=True)
    guardian_id = Column(String(64), nullable=False, index=True)

    # snapshot z rosteru w chwili tworzenia, bez joina na zywo
    child_id = Column(String(64), nullable=True)
    child_name = Column(String, nullable=True)
    child_class = Column(String, nullable=True)

    delivery_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(20), nullable=False, default="qris")

    # kwoty w jednostkach minor (rupiah), nigdy float
    total_amount = Column(BigInteger, nullable=False)
    admin_fee = Column(BigInteger, nullable=False, default=0)

    gateway_order_id = Column(String(64), nullable=True, index=True)
    gateway_token = Column(String(255), nullable=True)
    gateway_transaction_id = Column(String(255), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        order_by="OrderItemModel.id",
        lazy="selectin",
    )

    @property
    def subtotal(self) -> int:
        # total bez oplaty admin, chroni przed podwojna oplata przy retry
        return self.total_amount - (self.admin_fee or 0)
