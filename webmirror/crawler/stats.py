"""Thread-safe crawl statistics aggregation utilities."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
import threading
from typing import Any, Mapping

from .types import CrawlError, CrawlStats, FetchResult


class StatsCollector:
    """Collect and summarize crawler runtime statistics.

    The collector is thread-safe and intended for use across concurrent
    crawl workers.
    """

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()

        self._frontier_snapshot: dict[str, int] = {}

        self._fetch_status_code_counts: dict[str, int] = defaultdict(int)
        self._fetch_error_type_counts: dict[str, int] = defaultdict(int)
        self._fetch_elapsed_ms_total = 0
        self._fetch_elapsed_samples = 0

        self._errors_by_stage: dict[str, int] = defaultdict(int)
        self._unexpected_errors = 0

    def record_enqueue(self, count: int = 1) -> None:
        if count <= 0:
            return
        with self._lock:
            self._core.frontier_enqueued += count

    def record_skip(self) -> None:
        """Record one link skipped as already visited."""

        with self._lock:
            self._core.skipped_visited += 1

    def record_discovered(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self._core.links_discovered += count

    def record_fetch(self, result: FetchResult) -> None:
        """Record one fetch result."""

        with self._lock:
            if result.transport_ok:
                self._core.fetched_ok += 1
            else:
                self._core.fetched_error += 1

            if result.status_code is not None:
                self._fetch_status_code_counts[str(result.status_code)] += 1

            if result.error:
                err_type = result.error.split(":", maxsplit=1)[0].strip() or "Unknown"
                self._fetch_error_type_counts[err_type] += 1

            if result.elapsed_ms is not None:
                self._fetch_elapsed_ms_total += int(result.elapsed_ms)
                self._fetch_elapsed_samples += 1

    def record_stored(self, size: int) -> None:
        """Record one persisted page of `size` bytes."""

        with self._lock:
            self._core.stored_pages += 1
            self._core.stored_bytes += max(0, int(size))

    def record_error(self, error: CrawlError | None = None) -> None:
        """Record a per-link failure; `None` means an unexpected exception."""

        with self._lock:
            if error is None:
                self._unexpected_errors += 1
                return
            self._errors_by_stage[error.stage.value] += 1

    def record_frontier_snapshot(self, snapshot: Mapping[str, int]) -> None:
        """Attach latest frontier snapshot for diagnostics."""

        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def finish(self) -> None:
        """Mark crawl as finished."""

        with self._lock:
            self._core.finish()

    def core(self) -> CrawlStats:
        """Return a copy of the core `CrawlStats` record."""

        with self._lock:
            return CrawlStats(
                frontier_enqueued=self._core.frontier_enqueued,
                skipped_visited=self._core.skipped_visited,
                links_discovered=self._core.links_discovered,
                fetched_ok=self._core.fetched_ok,
                fetched_error=self._core.fetched_error,
                stored_pages=self._core.stored_pages,
                stored_bytes=self._core.stored_bytes,
                started_at=self._core.started_at,
                finished_at=self._core.finished_at,
            )

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        with self._lock:
            core = self._core.to_json()

            start = _parse_iso_utc(self._core.started_at)
            end = _parse_iso_utc(self._core.finished_at) if self._core.finished_at else datetime.now(
                timezone.utc
            )
            duration_seconds = max(0.0, (end - start).total_seconds())

            fetch_elapsed_avg = (
                self._fetch_elapsed_ms_total / self._fetch_elapsed_samples
                if self._fetch_elapsed_samples > 0
                else 0.0
            )
            fetched_total = self._core.fetched_ok + self._core.fetched_error

            return {
                **core,
                "duration_seconds": duration_seconds,
                "throughput": {
                    "fetched_per_second": (
                        fetched_total / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                    "stored_pages_per_second": (
                        self._core.stored_pages / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                },
                "frontier": dict(self._frontier_snapshot),
                "fetch": {
                    "status_code_counts": dict(self._fetch_status_code_counts),
                    "error_type_counts": dict(self._fetch_error_type_counts),
                    "elapsed_ms_total": self._fetch_elapsed_ms_total,
                    "elapsed_ms_samples": self._fetch_elapsed_samples,
                    "elapsed_ms_avg": fetch_elapsed_avg,
                },
                "errors": {
                    "by_stage": dict(self._errors_by_stage),
                    "unexpected": self._unexpected_errors,
                },
            }


def _parse_iso_utc(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["StatsCollector"]
