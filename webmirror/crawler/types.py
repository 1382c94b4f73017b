"""Core type definitions for the mirror crawler.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CrawlStage(str, Enum):
    """Processor stage names for error reporting."""

    FETCH = "fetch"
    STORE = "store"
    PARSE = "parse"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None

    @property
    def transport_ok(self) -> bool:
        # Status codes are not judged here; a 404 page is still mirrored.
        return self.error is None and self.body is not None

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    frontier_enqueued: int = 0
    skipped_visited: int = 0
    links_discovered: int = 0

    fetched_ok: int = 0
    fetched_error: int = 0
    stored_pages: int = 0
    stored_bytes: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "frontier_enqueued": self.frontier_enqueued,
            "skipped_visited": self.skipped_visited,
            "links_discovered": self.links_discovered,
            "fetched_ok": self.fetched_ok,
            "fetched_error": self.fetched_error,
            "stored_pages": self.stored_pages,
            "stored_bytes": self.stored_bytes,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


class CrawlError(Exception):
    """A failure confined to one link's processing stage."""

    def __init__(self, stage: CrawlStage, url: str, message: str) -> None:
        super().__init__(f"{stage.value} failed for {url}: {message}")
        self.stage = stage
        self.url = url
        self.message = message

    @classmethod
    def from_exception(cls, stage: CrawlStage, url: str, exc: BaseException) -> "CrawlError":
        return cls(stage, url, f"{exc.__class__.__name__}: {exc}")


__all__ = [
    "CrawlError",
    "CrawlStage",
    "CrawlStats",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "utc_now_iso",
]
