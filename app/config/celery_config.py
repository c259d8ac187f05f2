# app/config/celery_config.py
"""Celery application factory and schedule"""
from celery import Celery

from app.config.settings import get_settings

settings = get_settings()

TASK_MODULES = [
    "app.tasks.email_tasks",
    "app.tasks.invitation_tasks",
]


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        "provider_dispatch",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=TASK_MODULES,
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
    )

    if settings.INVITATION_TIMEOUT_SWEEP_ENABLED:
        app.conf.beat_schedule = {
            "expire-stale-invitations": {
                "task": "app.tasks.invitation_tasks.expire_stale_invitations",
                "schedule": float(settings.INVITATION_SWEEP_INTERVAL_SECONDS),
            }
        }

    return app


celery_app = create_celery_app()
