"""
Celery app for background jobs. Redis is both broker and result backend;
beat drives the token purge and the dashboard refresh.

Run with:
    celery -A foodie.celery_worker.celery_app worker --beat --loglevel=info
"""

from celery import Celery

from foodie.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "foodie_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["foodie.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    result_expires=3600,

    # both tasks are idempotent; redeliver on worker loss
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,

    # intervals in seconds
    beat_schedule={
        "purge-expired-tokens": {
            "task": "foodie.tasks.purge_expired_tokens",
            "schedule": float(settings.token_purge_interval_seconds),
        },
        "broadcast-dashboard-metrics": {
            "task": "foodie.tasks.broadcast_dashboard_metrics",
            "schedule": float(settings.dashboard_refresh_seconds),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
