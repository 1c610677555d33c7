"""
Celery Configuration

Configures Celery with Flask integration, Redis broker, and task routing
for the temp-copy reaper and deferred temp-copy deletion.
"""

import os

from celery import Celery
from kombu import Queue

REAP_TEMP_FILES_TASK = "storefront.tasks.reap_temp_files"
DELETE_TEMP_COPY_TASK = "storefront.tasks.delete_temp_copy"


class CeleryConfig:
    """Celery configuration settings."""

    # Broker settings
    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Task settings
    task_serializer = "json"
    accept_content = ["json"]
    result_serializer = "json"
    timezone = "UTC"
    enable_utc = True

    # Worker settings
    worker_prefetch_multiplier = 1
    task_acks_late = True

    # Task routing
    task_routes = {
        REAP_TEMP_FILES_TASK: {"queue": "cleanup_queue"},
        DELETE_TEMP_COPY_TASK: {"queue": "cleanup_queue"},
    }

    # Queue definitions
    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue("cleanup_queue", routing_key="cleanup"),
    )

    # Beat schedule for the temp-copy reaper
    beat_schedule = {
        "reap-temp-files": {
            "task": REAP_TEMP_FILES_TASK,
            "schedule": float(os.getenv("TEMP_REAPER_INTERVAL", 3600)),
        },
    }

    # Result backend settings
    result_expires = 3600  # 1 hour


def make_celery(app):
    """
    Create Celery instance with Flask app context.

    Args:
        app: Flask application instance

    Returns:
        Configured Celery instance
    """
    celery = Celery(
        app.import_name,
        backend=CeleryConfig.result_backend,
        broker=CeleryConfig.broker_url,
    )

    celery.config_from_object(CeleryConfig)

    # Ensure tasks run within Flask app context
    class ContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
