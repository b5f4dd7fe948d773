"""
Celery worker for CompTracker.

Start worker:    celery -A comptracker.worker worker --loglevel=info
Start beat:      celery -A comptracker.worker beat --loglevel=info
Start both:      celery -A comptracker.worker worker --beat --loglevel=info
"""
from celery import Celery
from celery.schedules import crontab

from comptracker.core.config import settings
from comptracker.core.sentry import init_sentry

celery_app = Celery(
    "comptracker_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.REDIS_URL,
    include=[
        "comptracker.tasks.email_queue",
        "comptracker.tasks.compliance",
    ],
)

init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24h
)

celery_app.conf.beat_schedule = {
    # ── Email ────────────────────────────────────────────────────────────────
    "flush-email-queue": {
        "task": "tasks.flush_email_queue",
        "schedule": 300.0,  # every 5 minutes
    },
    # ── Compliance ───────────────────────────────────────────────────────────
    "flag-overdue-requirements": {
        "task": "tasks.flag_overdue_requirements",
        "schedule": crontab(hour=0, minute=30),  # daily 00:30 UTC
    },
}
