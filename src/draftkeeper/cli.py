"""Command-line entrypoint for inspecting locally stored drafts.

Responsibilities (and nothing more):
- Configure structlog
- Open the configured draft store
- Run one subcommand: list, show or clear

Results are printed as JSON on stdout. Logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

import structlog

from draftkeeper import __version__
from draftkeeper.config import Settings
from draftkeeper.store import SqliteDraftStore

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="draftkeeper", description="Inspect locally saved editor drafts."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db-path", help="Draft database (defaults to the configured path)")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="List every stored draft key")
    show = commands.add_parser("show", help="Print the draft stored under KEY")
    show.add_argument("key")
    clear = commands.add_parser("clear", help="Delete the draft stored under KEY")
    clear.add_argument("key")
    return parser


async def _run(args: argparse.Namespace, store: SqliteDraftStore) -> int:
    try:
        if args.command == "list":
            drafts = await store.list_drafts()
            output = [{"key": d.key, "timestamp": d.timestamp} for d in drafts]
        elif args.command == "show":
            record = await store.get(args.key)
            if record is None:
                log.warning("draft_not_found", key=args.key)
                return 1
            output = record.model_dump()
        else:
            await store.delete(args.key)
            log.info("draft_cleared", key=args.key)
            output = {"key": args.key, "cleared": True}
    finally:
        await store.close()

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings)

    store = SqliteDraftStore(args.db_path or settings.drafts.db_path)
    return asyncio.run(_run(args, store))


if __name__ == "__main__":
    sys.exit(main())
