# catering/services/notification_service.py
from catering.celery_worker import celery_app
from catering.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_payment_confirmed(guardian_id: str, order_number: str):
        """
        Wysyła powiadomienie o opłaceniu i potwierdzeniu zamówienia.
        """
        send_payment_confirmed_task.delay(guardian_id, order_number)


@celery_app.task(name="catering.services.notification_service.send_payment_confirmed_task")
def send_payment_confirmed_task(guardian_id: str, order_number: str):
    """
    Celery task - kanaly dostarczenia (email/WhatsApp/push) sa poza zakresem,
    na razie tylko loguje.
    """
    logger.info(f"[NOTIFICATION] Guardian {guardian_id}: order {order_number} is paid and confirmed")
    return {"guardian_id": guardian_id, "order_number": order_number, "status": "sent"}
