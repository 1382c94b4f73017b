"""Crawler package: config, shared types, and mirror pipeline components."""

from .config import MirrorConfig, load_config, save_config
from .fetcher import Fetcher
from .frontier import Frontier
from .pipeline import Pipeline
from .processor import CrawlProcessor
from .stats import StatsCollector
from .storage import PageStore
from .types import CrawlError, CrawlStage, CrawlStats, FetchResult
from .url import (
    derive_identifier,
    extract_links_from_html,
    filter_in_scope_links,
    is_in_scope,
    resolve_link,
)
from .visited import VisitedTracker

__all__ = [
    "CrawlError",
    "CrawlProcessor",
    "CrawlStage",
    "CrawlStats",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "MirrorConfig",
    "PageStore",
    "Pipeline",
    "StatsCollector",
    "VisitedTracker",
    "derive_identifier",
    "extract_links_from_html",
    "filter_in_scope_links",
    "is_in_scope",
    "load_config",
    "resolve_link",
    "save_config",
]
