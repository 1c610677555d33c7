"""Celery tasks for temp-copy housekeeping."""
