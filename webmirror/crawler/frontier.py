"""Thread-safe, unbounded frontier queue with outstanding-work tracking."""

from __future__ import annotations

import queue
import threading
from typing import Iterable


class Frontier:
    """Frontier queue shared by producer/consumer crawl workers.

    - Unbounded: `push` never blocks, so a worker feeding discovered links
      back cannot deadlock against a full queue.
    - Not deduplicated: duplicates are suppressed by the visited tracker when
      a worker picks the link up.
    - Counts outstanding work (pushed but not yet finished) so callers can
      detect exhaustion with `wait_idle`.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[str] = queue.Queue()
        self._cond = threading.Condition()

        self._outstanding = 0
        self._enqueued_count = 0
        self._dequeued_count = 0
        self._completed_count = 0

    def push(self, link: str) -> None:
        """Enqueue one link."""

        with self._cond:
            self._outstanding += 1
            self._enqueued_count += 1
        self._queue.put(link)

    def push_many(self, links: Iterable[str]) -> int:
        """Enqueue multiple links in order; returns how many were pushed."""

        count = 0
        for link in links:
            self.push(link)
            count += 1
        return count

    def pop(self, *, timeout: float | None = None) -> str | None:
        """Pop one link for a worker thread.

        Returns `None` when nothing arrives before `timeout`.
        """

        try:
            link = self._queue.get(block=True, timeout=timeout)
        except queue.Empty:
            return None

        with self._cond:
            self._dequeued_count += 1
        return link

    def task_done(self) -> None:
        """Mark one popped link as finished."""

        with self._cond:
            if self._outstanding <= 0:
                raise ValueError("task_done() called more times than links were pushed")
            self._outstanding -= 1
            self._completed_count += 1
            if self._outstanding == 0:
                self._cond.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no work is outstanding.

        Returns True when idle, False when `timeout` elapsed first.
        """

        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding

    def snapshot(self) -> dict[str, int]:
        """Return frontier counters for logs/stats reporting."""

        with self._cond:
            return {
                "queue_size": self._queue.qsize(),
                "outstanding": self._outstanding,
                "enqueued": self._enqueued_count,
                "dequeued": self._dequeued_count,
                "completed": self._completed_count,
            }


__all__ = ["Frontier"]
