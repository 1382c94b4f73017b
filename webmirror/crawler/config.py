"""Typed mirror configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml  # type: ignore

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DEST_DIR,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_STOP_WHEN_IDLE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    MAX_PAGE_PATH_LENGTH,
    PAGE_EXTENSION,
    PATH_DIGEST_LENGTH,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict, JSONValue


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


@dataclass(slots=True)
class MirrorConfig:
    """Top-level configuration used by pipeline/processor/fetcher."""

    base_url: str
    dest_dir: Path = Path(DEFAULT_DEST_DIR)

    concurrency: int = DEFAULT_CONCURRENCY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    stop_when_idle: bool = DEFAULT_STOP_WHEN_IDLE

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or "").strip()
        if not self.base_url:
            raise ValueError("MirrorConfig requires a base URL")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL: {self.base_url!r}")

        self.dest_dir = Path(self.dest_dir)
        if not str(self.dest_dir).strip():
            raise ValueError("dest_dir cannot be empty")
        # Room for "/", one identifier char, "-{digest}" and the extension.
        min_page_path = len(str(self.dest_dir)) + 3 + PATH_DIGEST_LENGTH + len(PAGE_EXTENSION)
        if min_page_path > MAX_PAGE_PATH_LENGTH:
            raise ValueError(
                f"dest_dir leaves no room for page names within {MAX_PAGE_PATH_LENGTH} characters"
            )

        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    def headers(self) -> dict[str, str]:
        """Return request headers with the configured User-Agent."""

        merged: dict[str, str] = dict(self.default_headers)
        merged.setdefault("User-Agent", self.user_agent)
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for logs and reproducibility."""

        return {
            "base_url": self.base_url,
            "dest_dir": str(self.dest_dir),
            "concurrency": self.concurrency,
            "timeout_seconds": self.timeout_seconds,
            "stop_when_idle": self.stop_when_idle,
            "user_agent": self.user_agent,
            "default_headers": self.default_headers,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MirrorConfig":
        """Build config from a parsed dictionary."""

        if "base_url" not in payload:
            raise ValueError("Config missing required key: 'base_url'")

        return cls(
            base_url=str(payload["base_url"]),
            dest_dir=Path(str(payload.get("dest_dir", DEFAULT_DEST_DIR))),
            concurrency=_as_int(payload.get("concurrency", DEFAULT_CONCURRENCY), "concurrency"),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            stop_when_idle=_as_bool(
                payload.get("stop_when_idle", DEFAULT_STOP_WHEN_IDLE),
                "stop_when_idle",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            metadata=dict(payload.get("metadata", {})),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> MirrorConfig:
    """Load MirrorConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return MirrorConfig.from_dict(payload)


def save_config(config: MirrorConfig, path: str | Path) -> None:
    """Save MirrorConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "MirrorConfig",
    "load_config",
    "save_config",
]
