from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from dateutil import tz as dttz

from phototouch.util.errors import TimestampParseError

DEFAULT_TIMEZONE = "Asia/Tokyo"

# Acceptable timestamp formats (extend only if necessary):
# - 2023-05-01 10:00:00
# - 2023-05-01 (midnight in the reference timezone)
# - now
TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")

def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone name (e.g. 'Asia/Tokyo')."""
    zone = dttz.gettz(name) if name else None
    if zone is None:
        raise TimestampParseError(f"unknown timezone: {name!r}")
    return zone

def parse_timestamp(value: str, zone: tzinfo, now: datetime | None = None) -> datetime:
    """Parse a user supplied timestamp into an aware datetime in `zone`.

    `now` is returned for the literal "now" when given, so a caller can pin one
    instant for a whole batch.
    """
    v = value.strip()
    if v.lower() == "now":
        if now is not None:
            return now.astimezone(zone)
        return datetime.now(zone)
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(v, fmt).replace(tzinfo=zone)
        except ValueError:
            pass
    raise TimestampParseError(
        f"can't parse timestamp {value!r} (expected YYYY-MM-DD HH:MM:SS, YYYY-MM-DD or now)"
    )

def format_exif_datetime(dt: datetime) -> str:
    """Format datetime to EXIF DateTimeOriginal format: YYYY:MM:DD HH:MM:SS."""
    return dt.strftime("%Y:%m:%d %H:%M:%S")

def format_exif_subsec(dt: datetime) -> str:
    """YYYY:MM:DD HH:MM:SS.ss (hundredths of a second)."""
    return f"{format_exif_datetime(dt)}.{dt.microsecond // 10000:02d}"

def format_exif_with_offset(dt: datetime) -> str:
    """YYYY:MM:DD HH:MM:SS+HH:MM, as used by the File* system tags."""
    return f"{format_exif_datetime(dt)}{_format_offset(dt.utcoffset())}"

def format_log_date(dt: datetime) -> str:
    return dt.strftime("%Y/%m/%d")

def _format_offset(offset: timedelta | None) -> str:
    if offset is None:
        return "+00:00"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}"
