from sqlalchemy import Column, Integer, BigInteger, ForeignKey, String
from sqlalchemy.orm import relationship

from catering.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String(64), nullable=False)
    name = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(BigInteger, nullable=False)  # cena z katalogu w chwili zamowienia

    order = relationship("OrderModel", back_populates="items")
