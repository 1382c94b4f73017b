"""Per-link crawl processing: skip, fetch, persist, extract, filter."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from .stats import StatsCollector
from .storage import PageStore
from .types import CrawlError, CrawlStage, FetchResult
from .url import derive_identifier, extract_links_from_html, filter_in_scope_links
from .visited import VisitedTracker


logger = logging.getLogger(__name__)


class SupportsFetch(Protocol):
    def fetch(self, url: str) -> FetchResult: ...


LinkExtractor = Callable[[bytes], list[str]]


class CrawlProcessor:
    """Drive one link through its life cycle and return newly found links.

    Stages run in order and stop at the first failure:

    1. skip when the link is already visited (or claimed by another worker)
    2. fetch, marking the link visited on success
    3. derive the page identifier
    4. persist the body in the page store
    5. extract anchor targets from the body
    6. resolve root-relative targets and keep in-scope, unvisited ones

    Failures raise `CrawlError` tagged with the failing stage. Skipping is not
    an error.
    """

    def __init__(
        self,
        base_url: str,
        *,
        fetcher: SupportsFetch,
        store: PageStore,
        visited: VisitedTracker | None = None,
        extract_links: LinkExtractor = extract_links_from_html,
        stats: StatsCollector | None = None,
    ) -> None:
        self.base_url = base_url
        self.fetcher = fetcher
        self.store = store
        self.visited = visited if visited is not None else VisitedTracker(base_url, store)
        self.extract_links = extract_links
        self.stats = stats if stats is not None else StatsCollector()

    def process(self, link: str) -> list[str]:
        if not self.visited.claim(link):
            logger.debug("Skipping visited link %s", link)
            self.stats.record_skip()
            return []

        fetch_result = self.crawl(link)
        body = fetch_result.body or b""

        identifier = derive_identifier(link, self.base_url)
        try:
            path = self.store.save(identifier, body)
        except OSError as exc:
            raise CrawlError.from_exception(CrawlStage.STORE, link, exc) from exc
        self.stats.record_stored(len(body))
        logger.debug("Saved %s -> %s (%d bytes)", link, path, len(body))

        try:
            hrefs = self.extract_links(body)
        except Exception as exc:
            raise CrawlError.from_exception(CrawlStage.PARSE, link, exc) from exc

        new_links = [
            candidate
            for candidate in filter_in_scope_links(hrefs, self.base_url)
            if not self.visited.is_visited(candidate)
        ]
        self.stats.record_discovered(len(new_links))
        return new_links

    def crawl(self, link: str) -> FetchResult:
        """Fetch `link` and record it as visited when the transport succeeds.

        The caller must hold a claim on `link`; it is released on failure so a
        later rediscovery can retry it.
        """

        try:
            fetch_result = self.fetcher.fetch(link)
        except Exception as exc:
            self.visited.release(link)
            raise CrawlError.from_exception(CrawlStage.FETCH, link, exc) from exc

        self.stats.record_fetch(fetch_result)
        if not fetch_result.transport_ok:
            self.visited.release(link)
            raise CrawlError(
                CrawlStage.FETCH,
                link,
                fetch_result.error or "empty response",
            )

        self.visited.mark_visited(link)
        return fetch_result


__all__ = ["CrawlProcessor", "LinkExtractor", "SupportsFetch"]
