"""crawler-utils command line entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from crawler_utils.config.settings import Settings, SettingsLoadError, default_settings, load_settings
from crawler_utils.core.dates import extract_date
from crawler_utils.core.paths import normalize_paths, trim_all_parents
from crawler_utils.core.process import (
    MaxBufferExceeded,
    ProcessExitError,
    ProcessTimeoutError,
    exec_file_sync,
    run_command,
)

LOGGER = logging.getLogger("crawler_utils")


def _resolve_settings(raw_path: Optional[str]) -> Settings:
    path_raw = (raw_path or os.getenv("CRAWLER_UTILS_SETTINGS", "")).strip()
    if not path_raw:
        return default_settings()
    return load_settings(Path(path_raw))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crawler-utils", description="Path, date and process helpers")
    parser.add_argument("--settings", help="Settings YAML (default: $CRAWLER_UTILS_SETTINGS or built-in defaults)")
    sub = parser.add_subparsers(dest="action", required=True)

    p_norm = sub.add_parser("normalize", help="Rewrite backslash separators to forward slashes")
    p_norm.add_argument("paths", nargs="+")

    p_trim = sub.add_parser("trim", help="Strip a parent path prefix")
    p_trim.add_argument("--parent", required=True)
    p_trim.add_argument("paths", nargs="+")

    p_date = sub.add_parser("date", help="Extract a date from free text")
    p_date.add_argument("text")
    p_date.add_argument("--format", dest="formats", action="append", default=[], help="Extra format, tried first")
    p_date.add_argument("--date-only", action="store_true", help="Print YYYY-MM-DD instead of a full timestamp")

    p_spawn = sub.add_parser("spawn", help="Run a command and print its stdout")
    p_spawn.add_argument("--timeout", type=float)
    p_spawn.add_argument("--cwd")
    p_spawn.add_argument(
        "--buffered",
        action="store_true",
        help="Fail once output exceeds the buffer ceiling (process.max_buffer_bytes)",
    )
    p_spawn.add_argument("--max-buffer", type=int, help="Override process.max_buffer_bytes for --buffered")
    p_spawn.add_argument("command")
    p_spawn.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def _run_spawn(args: argparse.Namespace, settings: Settings) -> int:
    timeout = args.timeout if args.timeout is not None else settings.process.timeout_seconds
    options = {
        "cwd": args.cwd,
        "timeout": timeout,
        "encoding": settings.process.encoding,
        "errors": settings.process.errors,
    }
    try:
        if args.buffered:
            max_buffer = args.max_buffer if args.max_buffer is not None else settings.process.max_buffer_bytes
            output = exec_file_sync(args.command, args.args, max_buffer=max_buffer, **options).stdout
        else:
            output = run_command(args.command, args.args, **options)
    except ProcessExitError as exc:
        LOGGER.error("%s", exc)
        return exc.code if exc.code > 0 else 1
    except (ProcessTimeoutError, MaxBufferExceeded, ValueError) as exc:
        LOGGER.error("%s", exc)
        return 1
    except OSError as exc:
        LOGGER.error("command could not be started: %s", exc)
        return 127
    sys.stdout.write(output)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = _resolve_settings(args.settings)
    except SettingsLoadError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        LOGGER.error("startup blocked by invalid settings: %s", exc)
        return 2

    logging.basicConfig(
        level=settings.logging.level_no,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.action == "normalize":
        for path in normalize_paths(args.paths):
            print(path)
        return 0

    if args.action == "trim":
        for path in trim_all_parents(args.paths, args.parent):
            print(path)
        return 0

    if args.action == "date":
        parsed = extract_date(args.text, [*args.formats, *settings.dates.extra_formats])
        if parsed is None:
            LOGGER.info("no date found in %r", args.text)
            return 1
        print(parsed.to_iso_date() if args.date_only else parsed.to_iso())
        return 0

    return _run_spawn(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
