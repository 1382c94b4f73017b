"""CLI entrypoint for mirroring a website."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import signal
import sys
from typing import Any

from webmirror.crawler import MirrorConfig, Pipeline, load_config
from webmirror.crawler.constants import DEFAULT_BASE_URL, DEFAULT_DEST_DIR


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a website from a base URL and save every same-site page.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML mirror config.",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help=f"Base URL to start crawling from (default: {DEFAULT_BASE_URL}).",
    )
    parser.add_argument(
        "--dir",
        type=Path,
        default=None,
        help=f"Destination directory where pages are saved (default: {DEFAULT_DEST_DIR}).",
    )

    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--user_agent", type=str, default=None)
    parser.add_argument(
        "--keep_running",
        action="store_true",
        help="Keep workers alive after the frontier empties; stop with Ctrl+C.",
    )

    parser.add_argument(
        "--log_file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MirrorConfig:
    if args.config is not None:
        payload = load_config(args.config).to_dict()
    else:
        payload = {"base_url": DEFAULT_BASE_URL, "dest_dir": DEFAULT_DEST_DIR}

    if args.url is not None:
        payload["base_url"] = args.url
    if args.dir is not None:
        payload["dest_dir"] = str(args.dir)

    if args.concurrency is not None:
        payload["concurrency"] = args.concurrency
    if args.timeout_seconds is not None:
        payload["timeout_seconds"] = args.timeout_seconds
    if args.user_agent is not None:
        payload["user_agent"] = args.user_agent
    if args.keep_running:
        payload["stop_when_idle"] = False

    return MirrorConfig.from_dict(payload)


def setup_logging(log_file: Path | None, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Connection-pool chatter drowns out per-link messages at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def install_signal_handlers(pipeline: Pipeline) -> None:
    def _handle(signum: int, _frame: Any) -> None:
        logging.info("Received %s", signal.Signals(signum).name)
        pipeline.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def print_summary(result: dict[str, Any], *, print_stats_json: bool) -> None:
    stats = result.get("stats", {})

    print("\n=== Mirror Complete ===")
    print(f"base_url: {result.get('base_url')}")
    print(f"dest_dir: {result.get('dest_dir')}")

    print("\n--- Core Stats ---")
    for key in [
        "frontier_enqueued",
        "skipped_visited",
        "links_discovered",
        "fetched_ok",
        "fetched_error",
        "stored_pages",
        "stored_bytes",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}")

    errors = stats.get("errors", {}).get("by_stage", {})
    for stage, count in sorted(errors.items()):
        print(f"errors[{stage}]: {count}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    try:
        config = build_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info(
        "Starting mirror: base_url=%s, dest_dir=%s, concurrency=%d",
        config.base_url,
        config.dest_dir,
        config.concurrency,
    )

    try:
        pipeline = Pipeline(config)
        install_signal_handlers(pipeline)
        result = pipeline.run()
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Pipeline execution failed")
        return 1

    print_summary(result, print_stats_json=args.print_stats_json)
    logging.info("Application terminated successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
