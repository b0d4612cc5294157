from __future__ import annotations

class PhotoTouchError(Exception):
    """Base exception for the application."""

class FlagParseError(PhotoTouchError):
    """Raised when command line flags cannot be parsed."""

class WalkError(PhotoTouchError):
    """Raised when an input path cannot be traversed."""

class TimestampParseError(PhotoTouchError):
    """Raised when a timestamp string matches none of the accepted formats."""

class ExifToolError(PhotoTouchError):
    """Raised when ExifTool invocation fails."""

class ToolStartError(ExifToolError):
    """Raised when the ExifTool process cannot be launched."""

class MetadataExtractError(ExifToolError):
    """Raised when ExifTool reports no readable metadata for a file."""

class MetadataWriteError(ExifToolError):
    """Raised when ExifTool reports that a file was not updated."""

class CancellationError(PhotoTouchError):
    """Raised by tasks abandoned because a sibling task failed."""

class SettingsError(PhotoTouchError):
    """Raised when saved settings cannot be written."""

class LogFileError(PhotoTouchError):
    """Raised when the run log file cannot be appended to."""
