"""Application entrypoint.

Run in development:
    python -m phototouch.app -t "2023-05-01 10:00:00" photos/

Installed, this is the `phototouch` console script.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from tqdm import tqdm

from phototouch.core.batch import BatchRunner
from phototouch.core.modifier import MetadataModifier
from phototouch.core.progress import NullProgress, TqdmProgress
from phototouch.core.run_logger import RunLogger
from phototouch.core.scanner import discover
from phototouch.core.settings import AppSettings
from phototouch.exif.exiftool import ExifTool
from phototouch.util.errors import FlagParseError, PhotoTouchError


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise FlagParseError(message)


def build_parser(settings: AppSettings) -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="phototouch",
        description="Set the EXIF and file timestamps of photos to one date.",
    )
    p.add_argument("paths", nargs="*", help="Photo files or directories (searched recursively).")
    p.add_argument("-t", "--ts", default="now", help='Timestamp: "YYYY-MM-DD HH:MM:SS", "YYYY-MM-DD" or "now".')
    p.add_argument("-d", "--dir", default=".", help="Unused; kept for compatibility with older invocations.")
    p.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Display the changes that would be made without writing any file.",
    )
    p.add_argument(
        "-j", "--max-workers",
        type=int,
        default=settings.max_workers,
        help="Maximum files processed at once (0 = all at once).",
    )
    p.add_argument("--tz", default=settings.timezone, help="Reference timezone for the timestamp.")
    p.add_argument("--exiftool", default=settings.exiftool_path, help="Path to the exiftool executable.")
    p.add_argument("--log-file", default=settings.log_path, help="Also append log lines to this file.")
    p.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        default=settings.show_progress,
        help="Do not draw a progress bar.",
    )
    p.add_argument(
        "--save-settings",
        action="store_true",
        help="Remember --tz, --max-workers, --exiftool, --log-file and --no-progress as defaults.",
    )
    return p


def _echo(line: str) -> None:
    # Keeps log lines from tearing an active progress bar.
    tqdm.write(line, file=sys.stderr)


def run(argv: Sequence[str] | None, settings: AppSettings) -> None:
    args = build_parser(settings).parse_args(argv)
    if args.max_workers < 0:
        raise FlagParseError("--max-workers must be 0 or greater")

    if args.save_settings:
        settings.timezone = args.tz
        settings.max_workers = args.max_workers
        settings.exiftool_path = args.exiftool
        settings.log_path = args.log_file
        settings.show_progress = args.progress
        settings.save()

    # -d/--dir is accepted for compatibility but never walked; no paths means nothing to do.
    paths = discover(Path(p) for p in args.paths)

    logger = RunLogger(path=Path(args.log_file) if args.log_file else None, echo=_echo)
    exiftool_path = args.exiftool or None
    modifier = MetadataModifier(
        timezone=args.tz,
        logger=logger,
        tool_factory=lambda: ExifTool(exiftool_path),
    )
    logger.log(f"[INFO] {len(paths)} file(s) found (ts={args.ts!r}, dry_run={args.dry_run})")

    runner = BatchRunner(
        modify=modifier.modify,
        progress=TqdmProgress() if args.progress else NullProgress(),
        max_workers=args.max_workers,
    )
    outcome = runner.run(paths, args.ts, args.dry_run)

    for photo in outcome.photos:
        print("done", photo)

    if not outcome.ok:
        logger.log(f"[ERROR] {outcome.succeeded} of {outcome.total} succeeded")
    outcome.raise_for_error()


def main(argv: Sequence[str] | None = None) -> int:
    try:
        run(argv, AppSettings.load())
    except PhotoTouchError as e:
        print(f"[ERROR] failed to touch photos: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
