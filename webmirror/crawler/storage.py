"""Filesystem-backed page store for the local mirror.

PageStore owns the on-disk layout. Other modules should use this API instead of
building paths manually.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path

from .constants import (
    DIR_MODE,
    FILE_MODE,
    MAX_PAGE_PATH_LENGTH,
    PAGE_EXTENSION,
    PATH_DIGEST_LENGTH,
)


class PageStore:
    """Persist fetched pages as `{dest_dir}/{identifier}.html`."""

    def __init__(self, dest_dir: str | Path) -> None:
        self.dest_dir = Path(dest_dir)

    @staticmethod
    def _identifier_digest(identifier: str) -> str:
        return hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:PATH_DIGEST_LENGTH]

    def path_for(self, identifier: str) -> Path:
        """Build the deterministic page path for an identifier.

        Paths longer than the cap keep `dest_dir` whole; the identifier is cut
        down and suffixed with a digest of
        the full identifier, so two long URLs sharing a prefix still land in
        different files.
        """

        full_path = f"{self.dest_dir}/{identifier}{PAGE_EXTENSION}"
        if len(full_path) <= MAX_PAGE_PATH_LENGTH:
            return Path(full_path)

        prefix = f"{self.dest_dir}/"
        suffix = f"-{self._identifier_digest(identifier)}{PAGE_EXTENSION}"
        budget = MAX_PAGE_PATH_LENGTH - len(prefix) - len(suffix)
        if budget <= 0:
            raise ValueError(
                f"dest_dir is too long to hold pages within {MAX_PAGE_PATH_LENGTH} characters: "
                f"{self.dest_dir}"
            )
        return Path(prefix + identifier[:budget] + suffix)

    def exists(self, identifier: str) -> bool:
        """Return True if a page for `identifier` is already on disk.

        Only a missing file counts as absent; other stat errors propagate to
        the caller.
        """

        try:
            os.stat(self.path_for(identifier))
        except FileNotFoundError:
            return False
        return True

    def save(self, identifier: str, content: bytes) -> Path:
        """Persist page bytes atomically, overwriting any previous copy."""

        if not isinstance(content, (bytes, bytearray)):
            raise TypeError("save expects `content` as bytes")

        path = self.path_for(identifier)
        if not path.parent.exists():
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        self._atomic_write_bytes(path, bytes(content))
        return path

    @staticmethod
    def _atomic_write_bytes(path: Path, data: bytes) -> None:
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name[:64] + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = ["PageStore"]
