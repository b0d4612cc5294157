from __future__ import annotations

import threading

from phototouch.core.context import Context, ErrorGroup


def test_context_cancel_runs_callbacks_once() -> None:
    ctx = Context()
    calls: list[str] = []
    ctx.add_done_callback(lambda: calls.append("a"))

    ctx.cancel()
    ctx.cancel()

    assert ctx.cancelled()
    assert ctx.err() is not None
    assert calls == ["a"]


def test_callback_added_after_cancel_runs_immediately() -> None:
    ctx = Context()
    ctx.cancel()
    calls: list[str] = []

    ctx.add_done_callback(lambda: calls.append("late"))

    assert calls == ["late"]


def test_removed_callback_is_not_called() -> None:
    ctx = Context()
    calls: list[str] = []

    def cb() -> None:
        calls.append("x")

    ctx.add_done_callback(cb)
    ctx.remove_done_callback(cb)
    ctx.cancel()

    assert calls == []
    assert Context().err() is None


def test_error_group_without_errors() -> None:
    group = ErrorGroup(max_workers=4)
    done: list[int] = []
    lock = threading.Lock()

    def work(i: int) -> None:
        with lock:
            done.append(i)

    for i in range(10):
        group.go(lambda i=i: work(i))

    assert group.wait() is None
    assert sorted(done) == list(range(10))
    assert not group.context.cancelled()


def test_error_group_keeps_first_error_and_cancels() -> None:
    group = ErrorGroup(max_workers=1)
    first = ValueError("first")

    def fail_first() -> None:
        raise first

    def fail_second() -> None:
        raise KeyError("second")

    group.go(fail_first)
    group.go(fail_second)

    assert group.wait() is first
    assert group.wait() is first
    assert group.context.cancelled()
