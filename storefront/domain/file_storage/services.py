"""
File Storage Services

Domain services for reclaiming temporary copies.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from .entities import ReapStats

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_SECONDS = 3600


def remove_file_if_present(path: Union[str, Path]) -> bool:
    """
    Delete a file, treating an already-missing file as success.

    Args:
        path: File to delete

    Returns:
        True if this call removed the file, False if it was already gone

    Raises:
        OSError: For any failure other than the file being absent
    """
    try:
        os.unlink(path)
        return True
    except FileNotFoundError:
        return False


class TempFileReaper:
    """
    Domain service sweeping stale entries from a temp directory.

    The sweep is lock-free: request handlers may write new copies and
    deferred timers may delete old ones while it runs. A file disappearing
    between listing and deletion is counted, not reported as an error, and
    a failing entry never aborts the rest of the sweep.
    """

    def __init__(self, temp_dir: Union[str, Path], retention_seconds: int = DEFAULT_RETENTION_SECONDS):
        """
        Initialize TempFileReaper.

        Args:
            temp_dir: Directory holding temporary copies
            retention_seconds: Minimum age before an entry is removed
        """
        self.temp_dir = Path(temp_dir)
        self.retention_seconds = retention_seconds

    def sweep(self, now: Optional[float] = None) -> ReapStats:
        """
        Remove every file older than the retention window.

        Args:
            now: Optional epoch seconds override

        Returns:
            ReapStats describing the sweep
        """
        stats = ReapStats()
        threshold = (time.time() if now is None else now) - self.retention_seconds

        try:
            entries = list(os.scandir(self.temp_dir))
        except FileNotFoundError:
            logger.debug(f"Temp directory {self.temp_dir} does not exist, nothing to sweep")
            return stats

        for entry in entries:
            stats.scanned += 1
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue

                if entry.stat(follow_symlinks=False).st_mtime >= threshold:
                    continue

                if remove_file_if_present(entry.path):
                    stats.removed += 1
                    logger.debug(f"Removed stale temp copy: {entry.name}")
                else:
                    stats.already_gone += 1

            except FileNotFoundError:
                stats.already_gone += 1
            except OSError as e:
                stats.failed += 1
                error_msg = f"Failed to remove temp copy {entry.name}: {e}"
                stats.errors.append(error_msg)
                logger.warning(error_msg)

        if stats.removed or stats.failed:
            logger.info(
                f"Temp sweep of {self.temp_dir} - Scanned: {stats.scanned}, "
                f"Removed: {stats.removed}, Already gone: {stats.already_gone}, "
                f"Failed: {stats.failed}"
            )

        return stats
