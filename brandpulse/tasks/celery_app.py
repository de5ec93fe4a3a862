from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging
from celery.signals import worker_process_init

from brandpulse.core.config import settings
from brandpulse.core.logging import setup_logging
from brandpulse.core.sentry import init_sentry

celery_app = Celery(
    "brandpulse",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

# Executions fan out first; the catalog sweep runs once they have had time to land.
celery_app.conf.beat_schedule = {
    "dispatch-prompt-executions": {
        "task": "dispatch_executions",
        "schedule": crontab(hour=5, minute=0),
    },
    "sync-competitor-catalogs": {
        "task": "sync_competitor_catalogs",
        "schedule": crontab(hour=7, minute=0),
    },
}

celery_app.autodiscover_tasks(["brandpulse.tasks"])

# Explicit include as fallback for autodiscover (needed for CLI worker startup)
celery_app.conf.include = [
    "brandpulse.tasks.execution_tasks",
    "brandpulse.tasks.maintenance_tasks",
]


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs):
    # Connecting this signal stops Celery from installing its own handlers
    setup_logging()


@worker_process_init.connect
def _init_worker_sentry(**kwargs):
    init_sentry()
