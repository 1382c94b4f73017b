"""Default values shared by config, fetcher, and storage."""

from __future__ import annotations


DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_STOP_WHEN_IDLE = True

DEFAULT_BASE_URL = "https://go.dev"
DEFAULT_DEST_DIR = "data/saves"

DEFAULT_USER_AGENT = "webmirror/0.1 (+https://github.com/webmirror/webmirror)"
DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
}

HOME_IDENTIFIER = "home"
PAGE_EXTENSION = ".html"
MAX_PAGE_PATH_LENGTH = 256
PATH_DIGEST_LENGTH = 16

DIR_MODE = 0o700
FILE_MODE = 0o644

WORKER_POP_TIMEOUT_SECONDS = 0.5
WORKER_JOIN_TIMEOUT_SECONDS = 10.0

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
