from __future__ import annotations

import contextlib
import json
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Any, Mapping

from phototouch.util.errors import ExifToolError, MetadataWriteError, ToolStartError

_UPDATED_RX = re.compile(r"(\d+) image files? (?:updated|unchanged)")
_FAILED_RX = re.compile(r"(\d+) files? weren't updated due to errors")

class ExifTool:
    """Handle to one persistent ExifTool process (`-stay_open True -@ -`).

    Usage:
        with ExifTool() as et:
            records = et.extract_metadata(path)
            et.write_metadata(path, {"DateTimeOriginal": "2023:05:01 10:00:00"})

    A handle is not thread-safe; open one per worker.
    """

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or _resolve_exiftool_path()
        self._process: subprocess.Popen | None = None
        self._counter = 0

    def __enter__(self) -> "ExifTool":
        self.open()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._process is not None

    def open(self) -> None:
        if self._process is not None:
            return
        try:
            self._process = subprocess.Popen(
                [self.executable, "-stay_open", "True", "-@", "-"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise ToolStartError(_exiftool_missing_message()) from e
        except OSError as e:
            raise ToolStartError(f"failed to run exiftool ({self.executable}): {e}") from e

    def execute(self, *args: str) -> str:
        """Run one command on the open process and return its combined output.

        Each argument goes on its own line of the argfile stream; the command is
        terminated by `-executeN` and its output ends with the `{readyN}` marker.
        """
        proc = self._process
        if proc is None:
            raise ExifToolError("ExifTool handle is not open.")
        self._counter += 1
        marker = f"{{ready{self._counter}}}"
        try:
            for arg in args:
                proc.stdin.write(f"{arg}\n")
            proc.stdin.write(f"-execute{self._counter}\n")
            proc.stdin.flush()
        except OSError as e:
            raise ExifToolError(f"ExifTool is not accepting commands: {e}") from e

        lines: list[str] = []
        while True:
            line = proc.stdout.readline()
            if not line:
                raise ExifToolError("ExifTool exited unexpectedly.")
            if line.rstrip("\r\n") == marker:
                break
            lines.append(line)
        return "".join(lines)

    def extract_metadata(self, path: Path | str) -> list[dict[str, Any]]:
        """Return one tag mapping per readable file; empty if the file can't be read."""
        out = self.execute("-j", "-charset", "filename=utf8", str(path))
        return [r for r in _parse_json_records(out) if "Error" not in r]

    def write_metadata(self, path: Path | str, tags: Mapping[str, str]) -> None:
        """Assign `tags` in place (no `_original` backup is kept).

        Raises MetadataWriteError unless ExifTool reports the file as updated
        (or unchanged, when the values were already set).
        """
        args = ["-overwrite_original", "-charset", "filename=utf8"]
        args += [f"-{tag}={value}" for tag, value in tags.items()]
        args.append(str(path))
        out = self.execute(*args)

        failed = _FAILED_RX.search(out)
        written = sum(int(n) for n in _UPDATED_RX.findall(out))
        if (failed and int(failed.group(1)) > 0) or written == 0:
            reason = "; ".join(_error_lines(out)) or "ExifTool did not update the file."
            raise MetadataWriteError(f"{path}: {reason}")

    def close(self) -> None:
        proc = self._process
        if proc is None:
            return
        self._process = None
        if proc.stdin and not proc.stdin.closed:
            # The process may already be gone; closing is best-effort from here.
            with contextlib.suppress(OSError, ValueError):
                proc.stdin.write("-stay_open\nFalse\n")
                proc.stdin.flush()
            with contextlib.suppress(OSError, ValueError):
                proc.stdin.close()
        try:
            proc.wait(timeout=3)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait(timeout=1)
        finally:
            if proc.stdout:
                proc.stdout.close()


def _parse_json_records(out: str) -> list[dict[str, Any]]:
    # Warnings and errors share the stream with the JSON array and may quote
    # file names containing brackets.
    out = "\n".join(
        ln for ln in out.splitlines() if not ln.lstrip().startswith(("Error", "Warning"))
    )
    start = out.find("[")
    end = out.rfind("]")
    if start < 0 or end < start:
        return []
    try:
        data = json.loads(out[start:end + 1])
    except json.JSONDecodeError as e:
        raise ExifToolError(f"ExifTool returned malformed JSON: {e}") from e
    if not isinstance(data, list):
        raise ExifToolError("ExifTool JSON output is not a list.")
    return [r for r in data if isinstance(r, dict)]


def _error_lines(out: str) -> list[str]:
    return [ln.strip() for ln in out.splitlines() if ln.strip().startswith("Error")]


def _resolve_exiftool_path() -> str:
    """Resolve an ExifTool executable path.

    Resolution order:
    1) PHOTOTOUCH_EXIFTOOL_PATH env var (explicit override)
    2) PATH lookup
    3) Common macOS/Linux locations
    4) Fallback: "exiftool" (may still fail at runtime with a friendly error)
    """
    env_path = os.environ.get("PHOTOTOUCH_EXIFTOOL_PATH")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return str(p)

    which = shutil.which("exiftool")
    if which:
        return which

    for cand in ("/opt/homebrew/bin/exiftool", "/usr/local/bin/exiftool", "/usr/bin/exiftool"):
        if Path(cand).exists():
            return cand

    return "exiftool"


def _exiftool_missing_message() -> str:
    return (
        "ExifTool not found. Install ExifTool or set PHOTOTOUCH_EXIFTOOL_PATH "
        "(or pass --exiftool)."
    )
