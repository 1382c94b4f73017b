# File: tests/test_pipeline.py
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

from webmirror.crawler import (
    FetchResult,
    Fetcher,
    MirrorConfig,
    PageStore,
    Pipeline,
    StatsCollector,
    VisitedTracker,
)
from webmirror.crawler import pipeline as pipeline_module

from conftest import BASE_URL, StubFetcher, page


SITE = {
    BASE_URL: page("/docs", "/blog", "https://elsewhere.url/abc/x", BASE_URL + "/docs"),
    BASE_URL + "/docs": page(BASE_URL, "/docs/intro", "/docs/advanced"),
    BASE_URL + "/docs/intro": page("/docs", "/docs/advanced"),
    BASE_URL + "/docs/advanced": page("/docs/intro", "/blog"),
    BASE_URL + "/blog": page("/blog/post-1", "/broken"),
    BASE_URL + "/blog/post-1": page(BASE_URL),
}


def stored_names(dest_dir: Path) -> list[str]:
    return sorted(p.name for p in dest_dir.iterdir())


def test_run_mirrors_site_and_stops_when_idle(config: MirrorConfig, dest_dir: Path) -> None:
    fetcher = StubFetcher(SITE)

    result = Pipeline(config, fetcher=fetcher).run()

    assert stored_names(dest_dir) == [
        "blog.html",
        "blog_post-1.html",
        "docs.html",
        "docs_advanced.html",
        "docs_intro.html",
        "home.html",
    ]
    # Each page fetched once; the broken link is attempted and logged.
    assert sorted(fetcher.calls) == sorted([*SITE, BASE_URL + "/broken"])
    assert "https://elsewhere.url/abc/x" not in fetcher.calls

    stats = result["stats"]
    assert result["base_url"] == BASE_URL
    assert stats["stored_pages"] == 6
    assert stats["fetched_error"] == 1
    assert stats["errors"]["by_stage"] == {"fetch": 1}
    assert stats["frontier"]["outstanding"] == 0
    assert stats["finished_at"] is not None


def test_run_resumes_from_disk(config: MirrorConfig, dest_dir: Path) -> None:
    store = PageStore(dest_dir)
    store.save("docs", SITE[BASE_URL + "/docs"].encode("utf-8"))
    store.save("home", b"<html>old home</html>")
    fetcher = StubFetcher(SITE)

    Pipeline(config, fetcher=fetcher, store=store).run()

    # Home is re-read; /docs and everything only reachable through it is not.
    assert BASE_URL in fetcher.calls
    assert BASE_URL + "/docs" not in fetcher.calls
    assert BASE_URL + "/docs/intro" not in fetcher.calls
    assert BASE_URL + "/blog/post-1" in fetcher.calls
    assert store.path_for("home").read_bytes() == SITE[BASE_URL].encode("utf-8")


def test_worker_survives_unexpected_exceptions(config: MirrorConfig, dest_dir: Path) -> None:
    # /blog has a single inbound link, so the released claim is never retried.
    site = {
        BASE_URL: page("/docs", "/blog"),
        BASE_URL + "/docs": page("/docs/intro"),
        BASE_URL + "/docs/intro": page("/docs"),
        BASE_URL + "/blog": page("/blog/post-1"),
    }

    class Flaky(StubFetcher):
        def fetch(self, url: str) -> FetchResult:
            if url.endswith("/blog"):
                raise RuntimeError("transport exploded")
            return super().fetch(url)

    fetcher = Flaky(site)
    pipeline = Pipeline(config, fetcher=fetcher)
    result = pipeline.run()

    assert stored_names(dest_dir) == ["docs.html", "docs_intro.html", "home.html"]
    assert fetcher.calls.count(BASE_URL + "/blog") == 1
    assert result["stats"]["errors"]["by_stage"] == {"fetch": 1}
    assert result["stats"]["frontier"]["outstanding"] == 0
    assert not any(worker.is_alive() for worker in pipeline._workers)


def test_pipeline_shares_given_components(config: MirrorConfig, store: PageStore, tracker: VisitedTracker) -> None:
    stats = StatsCollector()
    assert len(tracker) == 0

    pipeline = Pipeline(config, fetcher=StubFetcher(SITE), store=store, visited=tracker, stats=stats)

    assert pipeline.visited is tracker
    assert pipeline.processor.visited is pipeline.visited
    assert pipeline.processor.store is store
    assert pipeline.processor.stats is stats

    pipeline.run()

    assert BASE_URL + "/docs/advanced" in tracker.visited_links()
    assert stats.core().stored_pages == 6


class RecordingFetcher(Fetcher):
    """Real fetcher whose requests block until released."""

    def __init__(self, config: MirrorConfig) -> None:
        super().__init__(config)
        self.release = threading.Event()
        self.started = threading.Event()
        self.closed = False

    def fetch(self, url: str) -> FetchResult:
        self.started.set()
        self.release.wait(timeout=10)
        return FetchResult(
            requested_url=url,
            final_url=url,
            status_code=200,
            content_type="text/html",
            body=page().encode("utf-8"),
        )

    def close(self) -> None:
        self.closed = True


def test_owned_fetcher_is_closed_after_run(monkeypatch, config: MirrorConfig) -> None:
    monkeypatch.setattr(pipeline_module, "Fetcher", RecordingFetcher)

    pipeline = Pipeline(config)
    pipeline.fetcher.release.set()
    pipeline.run()

    assert pipeline.fetcher.closed


def test_owned_fetcher_stays_open_while_a_worker_is_stuck(monkeypatch, dest_dir: Path, caplog) -> None:
    monkeypatch.setattr(pipeline_module, "Fetcher", RecordingFetcher)
    monkeypatch.setattr(pipeline_module, "WORKER_JOIN_TIMEOUT_SECONDS", 0.1)
    config = MirrorConfig(base_url=BASE_URL, dest_dir=dest_dir, concurrency=1)

    pipeline = Pipeline(config)
    fetcher = pipeline.fetcher
    runner = threading.Thread(target=pipeline.run, daemon=True)
    runner.start()
    assert fetcher.started.wait(timeout=10)

    with caplog.at_level(logging.WARNING, logger="webmirror.crawler.pipeline"):
        pipeline.stop()
        runner.join(timeout=10)

    assert not runner.is_alive()
    assert not fetcher.closed
    assert "Leaving HTTP sessions open" in caplog.text

    fetcher.release.set()
    for worker in pipeline._workers:
        worker.join(timeout=10)
    assert not any(worker.is_alive() for worker in pipeline._workers)


def test_stop_ends_keep_running_crawl(dest_dir: Path) -> None:
    config = MirrorConfig(base_url=BASE_URL, dest_dir=dest_dir, concurrency=2, stop_when_idle=False)
    pipeline = Pipeline(config, fetcher=StubFetcher(SITE))
    result: dict = {}

    runner = threading.Thread(target=lambda: result.update(pipeline.run()), daemon=True)
    runner.start()

    deadline = time.monotonic() + 10
    while pipeline.frontier.outstanding or not (dest_dir / "home.html").exists():
        assert time.monotonic() < deadline
        time.sleep(0.05)
    # Frontier is empty, but the pool keeps waiting for a stop signal.
    time.sleep(0.2)
    assert runner.is_alive()

    pipeline.stop()
    runner.join(timeout=10)

    assert not runner.is_alive()
    assert pipeline.stopped
    assert result["stats"]["stored_pages"] == 6
    assert not any(worker.is_alive() for worker in pipeline._workers)
