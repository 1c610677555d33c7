"""
Cleanup Tasks

Celery tasks removing temporary signed-URL copies: the periodic reaper
run by beat, and the per-copy deletion enqueued when a signed URL is
issued with TEMP_DELETION_SCHEDULER=celery.
"""

import logging

from flask import current_app

from celery_app import celery_app
from storefront.application.storage_service import StorageService
from storefront.config.celery_config import DELETE_TEMP_COPY_TASK, REAP_TEMP_FILES_TASK
from storefront.domain.errors import StorageError

logger = logging.getLogger(__name__)


def _storage_service() -> StorageService:
    return current_app.container.resolve(StorageService)


@celery_app.task(bind=True, name=REAP_TEMP_FILES_TASK)
def reap_temp_files(self):
    """
    Periodic sweep of stale temporary copies.

    Runs on the Celery beat schedule (TEMP_REAPER_INTERVAL). A backend
    without temp copies is skipped. Individual file failures are collected
    in the stats; the task itself never raises.

    Returns:
        dict: Sweep statistics with counts and errors
    """
    logger.info("Starting temp file reaper")

    try:
        storage_service = _storage_service()

        if not storage_service.supports_temp_cleanup:
            logger.debug(f"Storage provider {storage_service.provider} keeps no temp copies")
            return {"skipped": True, "provider": storage_service.provider, "errors": []}

        stats = storage_service.cleanup_temp_files().to_dict()

        if stats["errors"]:
            logger.warning(f"Temp reaper errors: {stats['errors']}")
        return stats

    except Exception as e:
        error_msg = f"Temp reaper task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {
            "scanned": 0,
            "removed": 0,
            "already_gone": 0,
            "failed": 0,
            "errors": [error_msg],
        }


@celery_app.task(bind=True, name=DELETE_TEMP_COPY_TASK, max_retries=3, default_retry_delay=60)
def delete_temp_copy(self, temp_key: str):
    """
    Delete one temporary copy once its signed URL has expired.

    A copy that is already gone counts as success.

    Returns:
        dict: temp_key and whether this run removed the copy
    """
    try:
        removed = _storage_service().delete_temp_copy(temp_key)
    except StorageError as e:
        logger.warning(f"Failed to delete temp copy {temp_key}: {e}")
        raise self.retry(exc=e)

    if removed:
        logger.info(f"Deleted expired temp copy {temp_key}")
    return {"temp_key": temp_key, "removed": removed}
