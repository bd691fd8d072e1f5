"""
Celery worker entry point
Sends booking confirmations and runs the daily reminder beat
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from app.config.celery_config import celery_app
from app.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    notification_tasks = sorted(name for name in celery_app.tasks if name.startswith("app.tasks."))
    logger.info(f"Celery worker ready, booking tasks: {notification_tasks}")
    for name, entry in celery_app.conf.beat_schedule.items():
        logger.info(f"Beat entry {name}: {entry['task']} at {entry['schedule']}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("Celery worker shutting down")


if __name__ == "__main__":
    # Embedded beat: run a single worker process like this, or a separate `celery beat`
    celery_app.start([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=4',
        '--max-tasks-per-child=1000'
    ])
