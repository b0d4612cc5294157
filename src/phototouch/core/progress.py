from __future__ import annotations

import sys
from typing import Protocol, TextIO

from tqdm import tqdm

class ProgressReporter(Protocol):
    def start(self, total: int) -> None: ...
    def increment(self) -> None: ...
    def finish(self) -> None: ...

class NullProgress:
    def start(self, total: int) -> None:
        pass

    def increment(self) -> None:
        pass

    def finish(self) -> None:
        pass

class TqdmProgress:
    """Terminal progress bar, one tick per collected result."""

    def __init__(self, description: str = "[INFO] Checking exif on photos...", file: TextIO | None = None) -> None:
        self.description = description
        self.file = file or sys.stderr
        self._bar: tqdm | None = None

    def start(self, total: int) -> None:
        self._bar = tqdm(total=total, desc=self.description, unit="file", file=self.file, ncols=80)

    def increment(self) -> None:
        if self._bar is not None:
            self._bar.update(1)

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
