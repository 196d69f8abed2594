"""Command line entry point.

Usage:
    python -m pollwatch src tests --interval 500 --test '\\.py$'

Prints one tab-separated line per change (kind, path) until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from collections.abc import Sequence

from pollwatch.config import load_config
from pollwatch.errors import WatchError
from pollwatch.logging import get_logger, setup_logging
from pollwatch.types import ChangeReport
from pollwatch.watcher import merge_options, watch

log = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pollwatch",
        description="Poll files/directories and print added, modified and deleted files.",
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to watch")
    parser.add_argument("--interval", type=float, help="Milliseconds between scans (default 1000)")
    parser.add_argument(
        "--follow-symlink",
        action="store_true",
        default=None,
        help="Watch the targets of symlinked files and directories",
    )
    parser.add_argument(
        "--include-dot-files",
        action="store_true",
        help="Also watch dotfiles and dot-directories",
    )
    parser.add_argument("--test", metavar="REGEX", help="Only report files whose path matches")
    parser.add_argument("--ignore", metavar="REGEX", help="Never report files whose path matches")
    parser.add_argument("--verbose", type=int, metavar="N", help="Log verbosity 0-4")
    parser.add_argument(
        "--config-root",
        metavar="DIR",
        help="Project directory holding .pollwatch/config.yaml",
    )
    return parser


def format_report(report: ChangeReport) -> list[str]:
    """Render a report as 'kind<TAB>path' lines."""
    lines = [f"added\t{path}" for path in report.added]
    lines.extend(f"modified\t{path}" for path in report.modified)
    lines.extend(f"deleted\t{path}" for path in report.deleted)
    return lines


async def _run(args: argparse.Namespace) -> None:
    config = load_config(project_root=args.config_root)
    if args.verbose is not None:
        config.logging = dataclasses.replace(config.logging, verbose=args.verbose)
    setup_logging(config.logging)

    options = merge_options(
        config.watch.to_options(),
        interval=args.interval,
        follow_symlink=args.follow_symlink,
        ignore_dot_files=False if args.include_dot_files else None,
        test=args.test,
        ignore=args.ignore,
    )
    async for report in watch(args.paths, options):
        for line in format_report(report):
            print(line, flush=True)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130
    except (WatchError, ValueError, OSError) as e:
        log.error("%s", e)
        print(f"pollwatch: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
