# File: tests/conftest.py
from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict

import pytest

from webmirror.crawler import FetchResult, MirrorConfig, PageStore, VisitedTracker


BASE_URL = "https://start.url/abc"


class StubFetcher:
    """In-memory fetcher: serves `pages`, fails every other URL."""

    def __init__(self, pages: Dict[str, str | bytes]) -> None:
        self.pages = {
            url: body.encode("utf-8") if isinstance(body, str) else body
            for url, body in pages.items()
        }
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch(self, url: str) -> FetchResult:
        with self._lock:
            self.calls.append(url)
        body = self.pages.get(url)
        if body is None:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="ConnectionError: no route to host",
            )
        return FetchResult(
            requested_url=url,
            final_url=url,
            status_code=200,
            content_type="text/html; charset=utf-8",
            body=body,
            elapsed_ms=1,
        )


def page(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<html><head><title>Demo</title></head><body>{anchors}</body></html>"


@pytest.fixture()
def dest_dir(tmp_path: Path) -> Path:
    return tmp_path / "saves"


@pytest.fixture()
def store(dest_dir: Path) -> PageStore:
    return PageStore(dest_dir)


@pytest.fixture()
def tracker(store: PageStore) -> VisitedTracker:
    return VisitedTracker(BASE_URL, store)


@pytest.fixture()
def config(dest_dir: Path) -> MirrorConfig:
    return MirrorConfig(base_url=BASE_URL, dest_dir=dest_dir, concurrency=3)
