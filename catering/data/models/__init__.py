#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from catering.data.models.order import OrderModel
from catering.data.models.order_item import OrderItemModel
from catering.data.models.schedule import ScheduleModel
from catering.data.models.batch_order import BatchOrderModel
from catering.data.models.payment import PaymentModel
from catering.data.models.cash_payment import CashPaymentModel

__all__ = [
    "OrderModel",
    "OrderItemModel",
    "ScheduleModel",
    "BatchOrderModel",
    "PaymentModel",
    "CashPaymentModel",
]
