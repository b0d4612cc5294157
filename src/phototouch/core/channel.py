from __future__ import annotations

import threading
from typing import Generic, Iterator, TypeVar

from phototouch.core.context import Context

T = TypeVar("T")

class ChannelClosed(Exception):
    """Raised by receive() once the channel is closed and drained."""

class ResultChannel(Generic[T]):
    """Unbuffered hand-off between producer tasks and one consuming loop.

    A send completes only when a receiver is waiting to take the value. Senders
    pass the batch Context so a cancelled batch never leaves one blocked.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slot: list[T] = []  # at most one value in flight
        self._receivers = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item: T, context: Context | None = None) -> None:
        """Hand `item` to a receiver.

        Raises CancellationError if `context` is cancelled first, and
        RuntimeError on a closed channel.
        """
        if context is not None:
            context.add_done_callback(self._wake)
        try:
            with self._cond:
                while True:
                    if self._closed:
                        raise RuntimeError("send on closed channel")
                    if context is not None and context.cancelled():
                        raise context.err()
                    if self._receivers > 0 and not self._slot:
                        self._slot.append(item)
                        self._cond.notify_all()
                        return
                    self._cond.wait()
        finally:
            if context is not None:
                context.remove_done_callback(self._wake)

    def receive(self) -> T:
        with self._cond:
            self._receivers += 1
            self._cond.notify_all()
            try:
                while not self._slot:
                    if self._closed:
                        raise ChannelClosed()
                    self._cond.wait()
                item = self._slot.pop()
                self._cond.notify_all()
                return item
            finally:
                self._receivers -= 1

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()
