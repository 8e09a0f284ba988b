"""Tests for the bounded record buffer."""

from __future__ import annotations

import threading

import pytest

from esreader.core.buffer import RecordBuffer


def test_drain_returns_in_order_and_empties() -> None:
    buf = RecordBuffer()
    for i in range(3):
        assert buf.put({"n": i})
    assert buf.drain() == [{"n": 0}, {"n": 1}, {"n": 2}]
    assert len(buf) == 0
    assert buf.drain() == []
    assert buf.drain() == []


def test_full_buffer_blocks_until_drained() -> None:
    buf = RecordBuffer(capacity=2)
    assert buf.put({"n": 0})
    assert buf.put({"n": 1})
    assert buf.put({"n": 2}, timeout=0.05) is False
    assert buf.drain() == [{"n": 0}, {"n": 1}]
    assert buf.put({"n": 2}, timeout=0.05)
    assert buf.drain() == [{"n": 2}]


def test_drain_wakes_a_blocked_writer() -> None:
    buf = RecordBuffer(capacity=1)
    buf.put({"n": 0})
    result = []
    writer = threading.Thread(target=lambda: result.append(buf.put({"n": 1})))
    writer.start()
    writer.join(0.05)
    assert writer.is_alive()

    assert buf.drain() == [{"n": 0}]
    writer.join(2)
    assert result == [True]
    assert buf.drain() == [{"n": 1}]


def test_close_wakes_a_blocked_writer_and_keeps_contents() -> None:
    buf = RecordBuffer(capacity=1)
    buf.put({"n": 0})
    result = []
    writer = threading.Thread(target=lambda: result.append(buf.put({"n": 1})))
    writer.start()
    writer.join(0.05)

    buf.close()
    writer.join(2)
    assert result == [False]
    assert buf.closed
    assert buf.put({"n": 2}) is False
    assert buf.drain() == [{"n": 0}]


def test_discard_drops_contents() -> None:
    buf = RecordBuffer()
    buf.put({"n": 0})
    buf.put({"n": 1})
    assert buf.discard() == 2
    assert buf.drain() == []


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        RecordBuffer(capacity=0)


def test_concurrent_drains_deliver_each_record_once() -> None:
    """Records written while several threads drain are each returned exactly once, in order."""
    total = 2000
    buf = RecordBuffer(capacity=64)
    done = threading.Event()
    drained: list[list[dict]] = [[] for _ in range(4)]

    def write() -> None:
        for i in range(total):
            buf.put({"n": i})
        done.set()

    def drain(slot: int) -> None:
        while not (done.is_set() and len(buf) == 0):
            drained[slot].extend(buf.drain())

    threads = [threading.Thread(target=drain, args=(i,)) for i in range(4)]
    threads.append(threading.Thread(target=write))
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    seen = [r["n"] for part in drained for r in part]
    assert sorted(seen) == list(range(total))
    for part in drained:
        values = [r["n"] for r in part]
        assert values == sorted(values)
