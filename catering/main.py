# catering/main.py
import uvicorn

from catering.api import create_app
from catering.data.database import Base, engine
from catering.utils.logging import get_logger

# IMPORT WSZYSTKICH MODELI NA POCZĄTKU (PRZED JAKIMKOLWIEK CREATE_ALL)
from catering.data.models import (  # noqa: F401
    BatchOrderModel,
    CashPaymentModel,
    OrderItemModel,
    OrderModel,
    PaymentModel,
    ScheduleModel,
)

logger = get_logger(__name__)

logger.info("Initializing database")
logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
