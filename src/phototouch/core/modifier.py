from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

from phototouch.core.photo import Photo
from phototouch.core.run_logger import RunLogger
from phototouch.exif.exiftool import ExifTool
from phototouch.util.errors import ExifToolError, MetadataExtractError
from phototouch.util.timeparse import (
    DEFAULT_TIMEZONE,
    format_exif_datetime,
    format_exif_subsec,
    format_exif_with_offset,
    format_log_date,
    parse_timestamp,
    resolve_timezone,
)

# Every tag is overwritten with the same absolute instant; existing values are
# not shifted.
DATETIME_TAGS: dict[str, Callable[[datetime], str]] = {
    "DateTimeOriginal": format_exif_datetime,
    "ModifyDate": format_exif_datetime,
    "CreateDate": format_exif_datetime,
    "SubSecCreateDate": format_exif_subsec,
    "SubSecModifyDate": format_exif_subsec,
    "SubSecDateTimeOriginal": format_exif_subsec,
    "FileModifyDate": format_exif_with_offset,
    "FileInodeChangeDate": format_exif_with_offset,
    "FileAccessDate": format_exif_with_offset,
}

def build_tag_assignments(ts: datetime) -> dict[str, str]:
    return {tag: fmt(ts) for tag, fmt in DATETIME_TAGS.items()}


class MetadataModifier:
    """Set the nine date/time tags of one file at a time.

    Each modify() call opens its own ExifTool handle and closes it on return,
    so one modifier can serve many worker threads. The literal "now" resolves
    to the instant the modifier was created.
    """

    def __init__(
        self,
        timezone: str = DEFAULT_TIMEZONE,
        logger: RunLogger | None = None,
        tool_factory: Callable[[], ExifTool] | None = None,
        now: datetime | None = None,
    ) -> None:
        self.zone = resolve_timezone(timezone)
        self.logger = logger or RunLogger()
        self.tool_factory = tool_factory or ExifTool
        self.now = now or datetime.now(self.zone)

    def resolve(self, timestamp: str) -> datetime:
        return parse_timestamp(timestamp, self.zone, now=self.now)

    def modify(self, path: Path, timestamp: str = "now", dry_run: bool = False) -> Photo:
        path = Path(path)
        ts = self.resolve(timestamp)
        try:
            return self._apply(path, ts, dry_run)
        except ExifToolError as e:
            # Concurrent tasks fail independently; name the file in every tool error.
            if str(path) in str(e):
                raise
            raise type(e)(f"{path}: {e}") from e

    def _apply(self, path: Path, ts: datetime, dry_run: bool) -> Photo:
        with self.tool_factory() as et:
            originals = et.extract_metadata(path)
            if not originals:
                raise MetadataExtractError(f"{path}: failed to extract metadata")

            assignments = build_tag_assignments(ts)
            record = dict(originals[0])
            record.update(assignments)

            if dry_run:
                self.logger.log(f"[DEBUG] DRY-RUN: Set {path} ({format_log_date(ts)})")
            else:
                self.logger.log(f"[DEBUG] Set {path} ({format_log_date(ts)})")
                et.write_metadata(path, assignments)

        return Photo(path=path, metadata=record)
