from __future__ import annotations

import threading

import pytest

from phototouch.core.channel import ChannelClosed, ResultChannel
from phototouch.core.context import Context
from phototouch.util.errors import CancellationError


def _start(target) -> threading.Thread:
    t = threading.Thread(target=target, daemon=True)
    t.start()
    return t


def test_send_hands_value_to_receiver() -> None:
    ch: ResultChannel[str] = ResultChannel()
    sender = _start(lambda: ch.send("a.jpg"))

    assert ch.receive() == "a.jpg"
    sender.join(timeout=2)
    assert not sender.is_alive()


def test_send_blocks_without_receiver() -> None:
    ch: ResultChannel[str] = ResultChannel()
    sender = _start(lambda: ch.send("a.jpg"))

    sender.join(timeout=0.1)
    assert sender.is_alive()

    assert ch.receive() == "a.jpg"
    sender.join(timeout=2)
    assert not sender.is_alive()


def test_send_on_cancelled_context_raises_immediately() -> None:
    ch: ResultChannel[str] = ResultChannel()
    ctx = Context()
    ctx.cancel()

    with pytest.raises(CancellationError):
        ch.send("a.jpg", ctx)


def test_cancel_releases_blocked_sender() -> None:
    ch: ResultChannel[str] = ResultChannel()
    ctx = Context()
    errors: list[Exception] = []

    def send() -> None:
        try:
            ch.send("a.jpg", ctx)
        except CancellationError as e:
            errors.append(e)

    sender = _start(send)
    sender.join(timeout=0.1)
    assert sender.is_alive()

    ctx.cancel()
    sender.join(timeout=2)

    assert not sender.is_alive()
    assert len(errors) == 1


def test_iteration_stops_at_close() -> None:
    ch: ResultChannel[int] = ResultChannel()

    def produce() -> None:
        for i in range(5):
            ch.send(i)
        ch.close()

    _start(produce)

    assert list(ch) == [0, 1, 2, 3, 4]
    assert ch.closed


def test_closed_channel_rejects_send_receive_and_second_close() -> None:
    ch: ResultChannel[int] = ResultChannel()
    ch.close()

    with pytest.raises(ChannelClosed):
        ch.receive()
    with pytest.raises(RuntimeError):
        ch.send(1)
    with pytest.raises(RuntimeError):
        ch.close()


def test_many_senders_one_receiver() -> None:
    ch: ResultChannel[int] = ResultChannel()
    senders = [_start(lambda i=i: ch.send(i)) for i in range(20)]

    got = [ch.receive() for _ in range(20)]

    assert sorted(got) == list(range(20))
    for s in senders:
        s.join(timeout=2)
