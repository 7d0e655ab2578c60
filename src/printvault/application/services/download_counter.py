from __future__ import annotations

import logging
import queue
import threading
import time

from printvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)


class DownloadCountRecorder:
    """Applies download-count increments on a background thread.

    ``record`` never blocks on the database and never raises; an increment
    that fails is logged and dropped.
    """

    def __init__(self, resource_repo: ResourceRepo) -> None:
        self.resource_repo = resource_repo
        self._queue: queue.Queue[str | None] = queue.Queue()
        self._worker = threading.Thread(
            target=self._worker_loop,
            daemon=True,
            name="download-count-recorder",
        )
        self._started = False
        self._stopped = False
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._started or self._stopped:
                return
            self._started = True
            self._worker.start()

    def shutdown(self, timeout: float = 2.0) -> None:
        with self._lock:
            if not self._started or self._stopped:
                self._stopped = True
                return
            self._stopped = True
        self.flush(timeout=timeout)
        self._queue.put(None)
        if self._worker.is_alive():
            self._worker.join(timeout=timeout)

    def record(self, resource_id: str) -> None:
        self.start()
        with self._lock:
            if not self._stopped:
                self._queue.put(resource_id)
                return
        logger.warning("Download recorder is stopped; dropping count for resource: %s", resource_id)

    def flush(self, timeout: float = 5.0) -> bool:
        """Wait until every queued increment has been attempted."""
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def _worker_loop(self) -> None:
        while True:
            resource_id = self._queue.get()
            try:
                if resource_id is None:
                    return
                self.resource_repo.increment_download_count(resource_id)
            except Exception:
                logger.exception("Failed to update download count for resource: %s", resource_id)
            finally:
                self._queue.task_done()
