# catering/celery_worker.py
from celery import Celery

from catering.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, TIMEZONE

celery_app = Celery(
    "catering",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "catering.tasks.quota",
    "catering.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "reconcile-quota-every-5-minutes": {
        "task": "catering.tasks.quota.reconcile_quota_task",
        "schedule": 300.0,  # co 5 minut
    },
}

celery_app.conf.timezone = TIMEZONE
