from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from phototouch.util.errors import LogFileError

def _stderr(line: str) -> None:
    print(line, file=sys.stderr)

@dataclass
class RunLogger:
    """Timestamped log lines, echoed to a stream and optionally mirrored to a file.

    Safe to call from concurrent tasks.
    """
    path: Path | None = None
    echo: Callable[[str], None] | None = _stderr
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def log(self, message: str) -> None:
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{ts}] {message}"
        with self._lock:
            if self.echo is not None:
                self.echo(line)
            if self.path is not None:
                try:
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                    with self.path.open("a", encoding="utf-8") as f:
                        f.write(line + "\n")
                except OSError as e:
                    raise LogFileError(f"can't write log file {self.path}: {e}") from e
