from celery import Celery
from celery.schedules import crontab
from .core.config import settings

app = Celery(
    __name__,
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

app.conf.worker_send_task_events = True
app.conf.task_send_sent_event = True

app.conf.timezone = "UTC"
app.conf.beat_schedule = {
    "retry-failed-seating-every-5-minutes": {
        "task": "cinema_orders.tasks.retry_failed_seating",
        "schedule": crontab(minute="*/5"),
        "options": {"queue": "maintenance"},
    },
}
app.autodiscover_tasks(["cinema_orders"])
