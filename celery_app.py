"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory so tasks resolve the same storage service as the
web process.
"""

from app_factory import create_app

# Create Flask app with all services initialized (including dependency container)
flask_app = create_app()

# Get Celery instance from Flask app
celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, after
# `celery_app` exists, to avoid a circular import at module load.
celery_app.conf.imports = ("storefront.tasks.cleanup_task",)
