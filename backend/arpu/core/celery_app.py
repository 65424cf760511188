from celery import Celery
from arpu.core.config import settings

celery_app = Celery(
    "arpu",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "arpu.tasks.notifications",
        "arpu.tasks.targets",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=240,
    result_expires=86400,  # 24 hours
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    broker_connection_retry_on_startup=True,
)

celery_app.conf.beat_schedule = {
    "refresh-overdue-targets": {
        "task": "arpu.tasks.targets.refresh_overdue_targets",
        "schedule": float(settings.OVERDUE_SWEEP_INTERVAL_SECONDS),
    },
    "send-pending-receipts": {
        "task": "arpu.tasks.notifications.send_pending_receipts",
        "schedule": 900.0,  # 15 minutes
    },
}
