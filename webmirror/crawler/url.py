"""Scope checks, identifier derivation, and link extraction helpers."""

from __future__ import annotations

from typing import Iterable

from bs4 import BeautifulSoup

from .constants import HOME_IDENTIFIER


def scope_prefix(base_url: str) -> str:
    """Return the prefix a link must carry to belong to `base_url`."""

    if base_url.endswith("/"):
        return base_url
    return base_url + "/"


def is_root_relative(link: str) -> bool:
    return link.startswith("/")


def is_in_scope(link: str, base_url: str) -> bool:
    """Return True when `link` belongs to the site rooted at `base_url`.

    Root-relative paths are always in scope. Absolute links must start with
    the base followed by `/`, so `https://x.test/docs` is outside
    `https://x.test/doc` and the bare base itself is outside too.
    """

    if is_root_relative(link):
        return True
    return link.startswith(scope_prefix(base_url))


def derive_identifier(link: str, base_url: str) -> str:
    """Derive the filesystem-safe page identifier for `link`.

    `https://go.dev/doc/tutorial/web-service-gin` under `https://go.dev`
    becomes `doc_tutorial_web-service-gin`; the base itself is `home`.
    """

    if not link.startswith(base_url):
        return HOME_IDENTIFIER

    remainder = link[len(base_url):]
    remainder = remainder.removeprefix("/").removesuffix("/")
    if not remainder:
        return HOME_IDENTIFIER
    return remainder.replace("/", "_")


def resolve_link(href: str, base_url: str) -> str:
    """Make a root-relative href absolute against `base_url`."""

    candidate = href.strip()
    if is_root_relative(candidate):
        return base_url.rstrip("/") + candidate
    return candidate


def filter_in_scope_links(hrefs: Iterable[str], base_url: str) -> list[str]:
    """Resolve hrefs and keep in-scope ones, preserving order."""

    output: list[str] = []
    for href in hrefs:
        resolved = resolve_link(href, base_url)
        if is_in_scope(resolved, base_url):
            output.append(resolved)
    return output


def extract_links_from_html(html: str | bytes) -> list[str]:
    """Return raw `href` values of `<a>` elements in document order."""

    soup = BeautifulSoup(html, "lxml")

    out: list[str] = []
    for element in soup.find_all("a"):
        href = element.get("href")
        if not isinstance(href, str):
            continue
        href = href.strip()
        if href:
            out.append(href)
    return out


__all__ = [
    "derive_identifier",
    "extract_links_from_html",
    "filter_in_scope_links",
    "is_in_scope",
    "is_root_relative",
    "resolve_link",
    "scope_prefix",
]
