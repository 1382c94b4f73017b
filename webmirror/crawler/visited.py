"""Thread-safe visited-state tracking backed by the page store."""

from __future__ import annotations

import logging
import threading

from .constants import HOME_IDENTIFIER
from .storage import PageStore
from .url import derive_identifier


logger = logging.getLogger(__name__)


class VisitedTracker:
    """Answer "has this link already been processed" for every worker.

    A link counts as visited when it was fetched during this run, when a worker
    currently holds a claim on it, or when its page already exists in the
    store from an earlier run. The home page never counts as visited by disk,
    so a restarted crawl re-reads it and rediscovers its links.
    """

    def __init__(self, base_url: str, store: PageStore) -> None:
        self.base_url = base_url
        self.store = store

        self._lock = threading.Lock()
        self._visited: set[str] = set()
        self._claimed: set[str] = set()

    def is_visited(self, link: str) -> bool:
        with self._lock:
            return self._is_visited_locked(link)

    def claim(self, link: str) -> bool:
        """Atomically reserve an unvisited link for the calling worker.

        Returns False when the link is visited or already claimed.
        """

        with self._lock:
            if self._is_visited_locked(link):
                return False
            self._claimed.add(link)
            return True

    def release(self, link: str) -> None:
        """Drop a claim without marking the link visited."""

        with self._lock:
            self._claimed.discard(link)

    def mark_visited(self, link: str) -> bool:
        """Record `link` as visited; returns True when newly added."""

        with self._lock:
            self._claimed.discard(link)
            if link in self._visited:
                return False
            self._visited.add(link)
            return True

    def visited_links(self) -> set[str]:
        """Return snapshot copy of links visited this run."""

        with self._lock:
            return set(self._visited)

    def __len__(self) -> int:
        with self._lock:
            return len(self._visited)

    def _is_visited_locked(self, link: str) -> bool:
        if link in self._visited or link in self._claimed:
            return True

        identifier = derive_identifier(link, self.base_url)
        if identifier == HOME_IDENTIFIER:
            return False

        try:
            return self.store.exists(identifier)
        except OSError as exc:
            # An unreadable page path counts as not visited.
            logger.debug("Stat failed for %s (%s); treating as not visited", link, exc)
            return False


__all__ = ["VisitedTracker"]
