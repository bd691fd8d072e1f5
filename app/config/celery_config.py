# app/config/celery_config.py
"""Celery application and beat schedule for notification tasks"""
from celery import Celery
from celery.schedules import crontab

from app.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    app = Celery(
        "slotbook",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["app.tasks.notification_tasks"],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_time_limit=300,
        task_soft_time_limit=240,
        worker_prefetch_multiplier=1,
        worker_max_tasks_per_child=1000,
        worker_hijack_root_logger=False,
        broker_connection_retry_on_startup=True,
        beat_schedule={
            "send-booking-reminders": {
                "task": "app.tasks.notification_tasks.send_booking_reminders",
                "schedule": crontab(hour=9, minute=0),
            },
        },
    )
    return app


celery_app = create_celery_app()
