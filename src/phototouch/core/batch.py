from __future__ import annotations

import threading
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

from phototouch.core.channel import ResultChannel
from phototouch.core.context import Context, ErrorGroup
from phototouch.core.photo import Photo
from phototouch.core.progress import NullProgress, ProgressReporter

ModifyFn = Callable[[Path, str, bool], Photo]  # path, timestamp, dry_run

@dataclass
class BatchOutcome:
    """Photos in completion order plus the first error of the batch, if any."""
    photos: list[Photo] = field(default_factory=list)
    total: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def succeeded(self) -> int:
        return len(self.photos)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class BatchRunner:
    """Fan one modify call per path out to worker threads and collect the results.

    Stages: IDLE -> DISPATCHING -> COLLECTING -> COMPLETED | FAILED.

    - Every task shares one Context; the first task error cancels it.
    - Results travel over an unbuffered ResultChannel and are collected in
      completion order, one progress tick each.
    - A closer thread closes the channel once every task has returned, so the
      collecting loop always terminates.
    - max_workers=None (or 0) runs every path at once.
    """

    def __init__(
        self,
        modify: ModifyFn,
        progress: ProgressReporter | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.modify = modify
        self.progress = progress or NullProgress()
        self.max_workers = max_workers
        self.stage = "IDLE"

    def run(self, paths: Iterable[Path], timestamp: str, dry_run: bool) -> BatchOutcome:
        files = list(paths)
        workers = self.max_workers if self.max_workers and self.max_workers > 0 else len(files)
        context = Context()
        group = ErrorGroup(context, max_workers=workers)
        channel: ResultChannel[Photo] = ResultChannel()

        def task(path: Path) -> None:
            # Tasks still queued behind the worker limit never start after a failure.
            if context.cancelled():
                raise context.err()
            photo = self.modify(path, timestamp, dry_run)
            channel.send(photo, context)

        self.stage = "DISPATCHING"
        try:
            for path in files:
                group.go(partial(task, path))
        except BaseException:
            # Tasks already submitted would otherwise block in send forever.
            context.cancel()
            raise

        def close_when_done() -> None:
            # The error is read again once the channel has drained.
            group.wait()
            channel.close()

        closer = threading.Thread(target=close_when_done, name="phototouch-closer", daemon=True)
        closer.start()

        self.stage = "COLLECTING"
        photos: list[Photo] = []
        self.progress.start(len(files))
        try:
            for photo in channel:
                self.progress.increment()
                photos.append(photo)
        except BaseException:
            # Release producers blocked on send (e.g. Ctrl-C while collecting).
            context.cancel()
            raise
        finally:
            self.progress.finish()

        error = group.wait()
        closer.join()
        self.stage = "FAILED" if error is not None else "COMPLETED"
        return BatchOutcome(photos=photos, total=len(files), error=error)


def touch(
    paths: Iterable[Path],
    timestamp: str,
    dry_run: bool,
    *,
    modify: ModifyFn,
    progress: ProgressReporter | None = None,
    max_workers: int | None = None,
) -> BatchOutcome:
    """Set the timestamp tags of every path concurrently. See BatchRunner."""
    return BatchRunner(modify=modify, progress=progress, max_workers=max_workers).run(
        paths, timestamp, dry_run
    )
