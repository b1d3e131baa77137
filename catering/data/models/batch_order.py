from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime

from catering.data.database import Base


class BatchOrderModel(Base):
    __tablename__ = "batch_orders"

    id = Column(Integer, primary_key=True)
    batch_id = Column(String(64), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    gateway_order_id = Column(String(64), nullable=False)
    # transakcja, ktora zamowienie mialo przed batchem; nadal mozna ja oplacic do wygasniecia
    superseded_gateway_order_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
