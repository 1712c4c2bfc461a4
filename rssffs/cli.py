"""Command line entrypoint for rssffs."""

from __future__ import annotations

import argparse
from typing import Any
from typing import Sequence
from uuid import uuid4

from core.config import DiscoveryConfig
from core.pipeline import run as run_pipeline
from core.settings import load_settings
from core.structured_logging import EventLogger, emit_json_event
from feedreader.client import RSSReaderClient

__version__ = "0.1.0"


def _resolve_command_run_id(args: argparse.Namespace) -> str:
    """Resolve run_id from CLI args or create one for command-level tracing."""
    explicit = getattr(args, "run_id", None)
    if explicit:
        return str(explicit)
    return str(uuid4())


def _emit_cli_event(
    event_type: str,
    *,
    run_id: str,
    command: str,
    **payload: Any,
) -> str:
    """Emit one structured CLI event line with standard fields."""
    return emit_json_event(
        event_type=event_type,
        run_id=run_id,
        command=command,
        **payload,
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return number


def _cmd_run(args: argparse.Namespace) -> int:
    """Discover feeds from a page URL and subscribe them to a category."""
    run_id = _resolve_command_run_id(args)
    settings = load_settings(args.env_file)
    logger = EventLogger(run_id=run_id, min_level="debug" if args.debug else "info")

    result = run_pipeline(
        page_url=args.url.strip(),
        category=args.category,
        debug=args.debug,
        clear_category_feeds=args.clear_category_feeds,
        single_url_mode=args.single_url_mode,
        settings=settings,
        logger=logger,
        max_workers=args.max_workers,
    )
    _emit_cli_event(
        "cli_run_completed",
        run_id=result.run_id,
        command="run",
        url=result.page_url,
        category=result.category,
        mode=result.mode.value if result.mode else None,
        status=result.status.value,
        discovered=len(result.discovered_feeds),
        subscribed=result.success_count,
        failed=len(result.failed_feeds),
        deleted=result.deleted_feed_count,
        error_type=result.error_type,
        error=result.error_message,
    )
    return 0 if result.ok else 1


def _cmd_categories(args: argparse.Namespace) -> int:
    """List the feed reader's categories."""
    run_id = _resolve_command_run_id(args)
    settings = load_settings(args.env_file)
    client = RSSReaderClient(
        endpoint=settings.rss_reader_endpoint,
        api_key=settings.rss_reader_api_key,
    )
    categories = client.list_categories()
    _emit_cli_event(
        "cli_categories_completed",
        run_id=run_id,
        command="categories",
        categories=[{"id": item.id, "title": item.title} for item in categories],
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Create argument parser for the rssffs CLI."""
    parser = argparse.ArgumentParser(
        prog="rssffs",
        description=(
            "RSS Feed Finder [and] Subscriber: find feeds on a URL and on the "
            "domains it links to, and subscribe them in your feed reader"
        ),
    )
    parser.add_argument("--version", action="version", version=f"rssffs {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run",
        help="Discover feeds from a page URL and subscribe to them",
    )
    run_parser.add_argument("url", help="Page URL to start from")
    run_parser.add_argument(
        "-c",
        "--category",
        required=True,
        help="Feed reader category name to assign new feeds to",
    )
    run_parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug-level logging and only pretend to subscribe",
    )
    run_parser.add_argument(
        "-r",
        "--clear-category-feeds",
        action="store_true",
        help="Delete all feeds within the category before subscribing to new feeds",
    )
    mode_group = run_parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "-s",
        "--single-url-mode",
        dest="single_url_mode",
        action="store_true",
        default=None,
        help="Only check the given URL's own domain (overrides SINGLE_URL_MODE)",
    )
    mode_group.add_argument(
        "--traversal-mode",
        dest="single_url_mode",
        action="store_false",
        default=None,
        help="Check every domain linked from the page (overrides SINGLE_URL_MODE)",
    )
    run_parser.add_argument(
        "--max-workers",
        type=_positive_int,
        default=DiscoveryConfig.MAX_SCAN_WORKERS,
        help="Cap on concurrent domain probes (default: one per domain)",
    )
    run_parser.add_argument("--env-file", help="dotenv file to load (default: ./.env)")
    run_parser.add_argument("--run-id", help="Optional explicit run ID for logging")
    run_parser.set_defaults(func=_cmd_run)

    categories_parser = subparsers.add_parser(
        "categories",
        help="List feed reader categories",
    )
    categories_parser.add_argument("--env-file", help="dotenv file to load (default: ./.env)")
    categories_parser.add_argument("--run-id", help="Optional explicit run ID for logging")
    categories_parser.set_defaults(func=_cmd_categories)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Execute CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return int(args.func(args))
    except Exception as exc:
        run_id = _resolve_command_run_id(args)
        _emit_cli_event(
            "cli_error",
            run_id=run_id,
            command=str(getattr(args, "command", "unknown")),
            level="error",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return 1


def cli() -> None:
    """Console-script entrypoint."""
    raise SystemExit(main())


if __name__ == "__main__":
    raise SystemExit(main())
