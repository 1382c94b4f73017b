"""Worker-pool orchestration over a shared frontier."""

from __future__ import annotations

import logging
import threading
from typing import Any

from .config import MirrorConfig
from .constants import WORKER_JOIN_TIMEOUT_SECONDS, WORKER_POP_TIMEOUT_SECONDS
from .fetcher import Fetcher
from .frontier import Frontier
from .processor import CrawlProcessor, SupportsFetch
from .stats import StatsCollector
from .storage import PageStore
from .types import CrawlError
from .visited import VisitedTracker


logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates frontier, processor, visited tracker, storage, and stats.

    `concurrency` worker threads pull links from one frontier, run them
    through the processor and push discovered links back. The run ends when
    `stop()` is called or, with `stop_when_idle`, when every pushed link has
    been processed. Workers check the stop event between links only, so an
    in-flight fetch finishes before its worker exits.
    """

    def __init__(
        self,
        config: MirrorConfig,
        *,
        store: PageStore | None = None,
        fetcher: SupportsFetch | None = None,
        visited: VisitedTracker | None = None,
        stats: StatsCollector | None = None,
    ) -> None:
        self.config = config

        self.store = store if store is not None else PageStore(config.dest_dir)
        self.fetcher = fetcher if fetcher is not None else Fetcher(config)
        self.visited = (
            visited if visited is not None else VisitedTracker(config.base_url, self.store)
        )
        self.stats = stats if stats is not None else StatsCollector()
        self.processor = CrawlProcessor(
            config.base_url,
            fetcher=self.fetcher,
            store=self.store,
            visited=self.visited,
            stats=self.stats,
        )
        self.frontier = Frontier()

        self._owns_fetcher = fetcher is None
        self._stop = threading.Event()
        self._workers: list[threading.Thread] = []

    def run(self) -> dict[str, Any]:
        """Crawl from the base URL until stopped or the frontier is exhausted."""

        logger.info(
            "Mirroring %s into %s with %d workers",
            self.config.base_url,
            self.config.dest_dir,
            self.config.concurrency,
        )

        try:
            self._run_workers()
        finally:
            if self._owns_fetcher and isinstance(self.fetcher, Fetcher):
                self._close_fetcher()

        self.stats.record_frontier_snapshot(self.frontier.snapshot())
        self.stats.finish()
        summary = self.stats.to_json()
        logger.info(
            "Crawl finished: %d pages stored, %d fetch errors, %d skipped",
            summary["stored_pages"],
            summary["fetched_error"],
            summary["skipped_visited"],
        )

        return {
            "base_url": self.config.base_url,
            "dest_dir": str(self.config.dest_dir),
            "stats": summary,
        }

    def stop(self) -> None:
        """Signal every worker to exit after its current link."""

        if not self._stop.is_set():
            logger.info("Stop requested; waiting for workers to finish")
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _run_workers(self) -> None:
        self.frontier.push(self.config.base_url)
        self.stats.record_enqueue()

        self._workers = [
            threading.Thread(
                target=self._frontier_worker,
                name=f"mirror-worker-{idx}",
                daemon=True,
            )
            for idx in range(self.config.concurrency)
        ]

        for worker in self._workers:
            worker.start()

        try:
            while not self._stop.is_set():
                if self.config.stop_when_idle and self.frontier.wait_idle(
                    timeout=WORKER_POP_TIMEOUT_SECONDS
                ):
                    logger.info("Frontier exhausted")
                    break
                if not self.config.stop_when_idle:
                    self._stop.wait(timeout=WORKER_POP_TIMEOUT_SECONDS)
        finally:
            self._stop.set()
            for worker in self._workers:
                worker.join(timeout=WORKER_JOIN_TIMEOUT_SECONDS)
                if worker.is_alive():
                    logger.warning("%s did not exit within %.1fs", worker.name, WORKER_JOIN_TIMEOUT_SECONDS)

    def _close_fetcher(self) -> None:
        # A straggling worker may still be inside a request on its session.
        stragglers = [worker.name for worker in self._workers if worker.is_alive()]
        if stragglers:
            logger.warning("Leaving HTTP sessions open; still running: %s", ", ".join(stragglers))
            return
        self.fetcher.close()

    def _frontier_worker(self) -> None:
        while not self._stop.is_set():
            link = self.frontier.pop(timeout=WORKER_POP_TIMEOUT_SECONDS)
            if link is None:
                continue

            try:
                new_links = self.processor.process(link)
                if new_links:
                    self.stats.record_enqueue(self.frontier.push_many(new_links))
            except CrawlError as exc:
                logger.warning("[%s] %s: %s", exc.stage.value, exc.url, exc.message)
                self.stats.record_error(exc)
            except Exception:
                logger.exception("Unexpected failure while processing %s", link)
                self.stats.record_error()
            finally:
                self.frontier.task_done()


__all__ = ["Pipeline"]
