"""
Deferred Deletion Schedulers

Producers of "delete temp copy K after N seconds". Each scheduler is a
best-effort safety net alongside the periodic reaper; the deletion target
is idempotent, so timers never coordinate with the reaper or each other.
"""

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from storefront.config.celery_config import DELETE_TEMP_COPY_TASK

logger = logging.getLogger(__name__)


class DeletionScheduler(ABC):
    """Schedules the deletion of one temp copy after a delay."""

    @abstractmethod
    def schedule(self, temp_key: str, delay_seconds: int) -> None:
        pass  # pragma: no cover

    def shutdown(self) -> None:
        """Release any pending timers. Default is a no-op."""


class ThreadingDeletionScheduler(DeletionScheduler):
    """
    In-process scheduler backed by one daemon worker thread.

    Due deletions sit in a heap ordered by due time, so the number of
    threads stays constant however many links are issued. Pending
    deletions die with the process; the reaper picks up anything they
    leave behind.
    """

    def __init__(self, delete_fn: Callable[[str], object]):
        """
        Args:
            delete_fn: Idempotent callable removing a temp copy by key
        """
        self._delete_fn = delete_fn
        self._queue: List[Tuple[float, int, str]] = []
        self._counter = itertools.count()
        self._in_flight = 0
        self._stopped = False
        self._condition = threading.Condition()
        self._thread: Optional[threading.Thread] = None

    def schedule(self, temp_key: str, delay_seconds: int) -> None:
        due = time.monotonic() + delay_seconds
        with self._condition:
            self._stopped = False
            heapq.heappush(self._queue, (due, next(self._counter), temp_key))
            self._ensure_worker()
            self._condition.notify()
        logger.debug(f"Scheduled deletion of temp copy {temp_key} in {delay_seconds}s")

    def _ensure_worker(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._loop, name="temp-delete", daemon=True)
        self._thread.start()

    def _next_due(self) -> Optional[str]:
        """Block until a deletion is due; None once shut down."""
        with self._condition:
            while not self._stopped and self._thread is threading.current_thread():
                if not self._queue:
                    self._condition.wait()
                    continue
                due, _, temp_key = self._queue[0]
                remaining = due - time.monotonic()
                if remaining <= 0:
                    heapq.heappop(self._queue)
                    self._in_flight += 1
                    return temp_key
                self._condition.wait(remaining)
            return None

    def _loop(self) -> None:
        while True:
            temp_key = self._next_due()
            if temp_key is None:
                return
            try:
                self._delete_fn(temp_key)
            except Exception as e:
                # No caller to report to; the reaper retries on its next pass
                logger.warning(f"Deferred deletion of temp copy {temp_key} failed: {e}")
            finally:
                with self._condition:
                    self._in_flight -= 1

    @property
    def pending(self) -> int:
        with self._condition:
            return len(self._queue) + self._in_flight

    def shutdown(self) -> None:
        with self._condition:
            self._stopped = True
            self._queue.clear()
            self._condition.notify_all()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1)


class CeleryDeletionScheduler(DeletionScheduler):
    """Scheduler that enqueues a countdown Celery task per temp copy."""

    def __init__(self, celery, task_name: str = DELETE_TEMP_COPY_TASK, queue: Optional[str] = "cleanup_queue"):
        """
        Args:
            celery: Celery application instance
            task_name: Registered name of the delete task
            queue: Queue the task is routed to
        """
        self.celery = celery
        self.task_name = task_name
        self.queue = queue

    def schedule(self, temp_key: str, delay_seconds: int) -> None:
        options = {"countdown": delay_seconds}
        if self.queue:
            options["queue"] = self.queue
        try:
            self.celery.send_task(self.task_name, args=(temp_key,), **options)
            logger.debug(f"Enqueued deletion of temp copy {temp_key} in {delay_seconds}s")
        except Exception as e:
            # The signed URL is still bounded by its token; the reaper removes the copy
            logger.warning(f"Failed to enqueue deletion of temp copy {temp_key}: {e}")


class IntervalReaper:
    """
    Daemon thread invoking a sweep callable on a fixed interval.

    Used when no Celery beat scheduler runs alongside the web process.
    """

    def __init__(self, sweep_fn: Callable[[], object], interval_seconds: int):
        self._sweep_fn = sweep_fn
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="temp-reaper", daemon=True)
        self._thread.start()
        logger.info(f"Temp reaper thread started (interval {self.interval_seconds}s)")

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self._sweep_fn()
            except Exception as e:
                logger.error(f"Temp reaper sweep failed: {e}", exc_info=True)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
