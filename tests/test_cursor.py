"""Tests for the scroll cursor state machine."""

from __future__ import annotations

import pytest
from conftest import FakeTransport, make_hits, split_batches

from esreader.core.config import QuerySpec
from esreader.core.cursor import EXHAUSTED_POSITION, CursorState, ScrollCursor, iter_cursor
from esreader.core.errors import InvalidStateError, ProtocolError


def _read_all(cursor: ScrollCursor) -> list:
    return list(iter_cursor(cursor))


def test_batches_of_two_two_one_with_limit_five() -> None:
    """Five hits in batches [2, 2, 1] with limit 5 take exactly three calls."""
    hits = make_hits(5)
    transport = FakeTransport(split_batches(hits, [2, 2, 1]))
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=2, limit=5))
    cursor.open()

    assert _read_all(cursor) == hits
    assert transport.fetch_calls == 3
    assert cursor.read_count == 5
    assert cursor.is_exhausted()
    assert cursor.advance() is None
    assert transport.fetch_calls == 3


def test_empty_continuation_exhausts_and_stops_scrolling() -> None:
    """An empty batch ends the session; nothing is fetched after it."""
    hits = make_hits(3)
    transport = FakeTransport(split_batches(hits, [2, 1]))
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=2))
    cursor.open()

    assert _read_all(cursor) == hits
    assert cursor.state is CursorState.EXHAUSTED
    assert cursor.position == EXHAUSTED_POSITION
    assert transport.fetch_calls == 3  # open + 1 + the empty one
    for _ in range(3):
        assert cursor.advance() is None
    assert transport.fetch_calls == 3


def test_empty_first_batch_is_exhausted_immediately() -> None:
    transport = FakeTransport([[]])
    cursor = ScrollCursor(transport, QuerySpec.build())
    cursor.open()

    assert cursor.state is CursorState.EXHAUSTED
    assert cursor.is_exhausted()
    assert cursor.advance() is None
    assert transport.fetch_calls == 1


def test_limit_zero_never_touches_the_cluster() -> None:
    transport = FakeTransport([make_hits(3)])
    cursor = ScrollCursor(transport, QuerySpec.build(limit=0))
    cursor.open()

    assert cursor.is_exhausted()
    assert cursor.advance() is None
    assert transport.fetch_calls == 0


def test_limit_wins_over_cluster_total() -> None:
    """A larger reported total still stops at the limit, mid-batch."""
    transport = FakeTransport(split_batches(make_hits(10), [4, 4, 2]), total_hits=10)
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=4, limit=6))
    cursor.open()

    assert [h["_id"] for h in _read_all(cursor)] == [f"doc-{i}" for i in range(6)]
    assert cursor.hit_count == 10
    assert cursor.remaining_count == 0
    assert transport.fetch_calls == 2


def test_continue_failure_moves_to_failed() -> None:
    """An error on the second continuation ends the session, no retry."""
    hits = make_hits(6)
    transport = FakeTransport(split_batches(hits, [2, 2, 2]), fail_on_call=2)
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=2))
    cursor.open()

    assert _read_all(cursor) == hits[:4]
    assert cursor.state is CursorState.FAILED
    assert isinstance(cursor.error, ProtocolError)
    assert cursor.advance() is None
    assert transport.fetch_calls == 3


def test_abort_moves_to_failed_without_network() -> None:
    transport = FakeTransport([make_hits(2)])
    cursor = ScrollCursor(transport, QuerySpec.build())
    error = RuntimeError("decoder unavailable")

    cursor.abort(error)

    assert cursor.state is CursorState.FAILED
    assert cursor.error is error
    assert cursor.is_exhausted()
    assert transport.fetch_calls == 0


def test_open_failure_raises_and_fails() -> None:
    transport = FakeTransport([make_hits(2)], fail_on_call=0)
    cursor = ScrollCursor(transport, QuerySpec.build())
    with pytest.raises(ProtocolError):
        cursor.open()
    assert cursor.state is CursorState.FAILED
    assert cursor.is_exhausted()


def test_advance_before_open_is_an_error() -> None:
    cursor = ScrollCursor(FakeTransport([]), QuerySpec.build())
    with pytest.raises(InvalidStateError):
        cursor.advance()


def test_open_twice_is_an_error() -> None:
    cursor = ScrollCursor(FakeTransport([make_hits(1)]), QuerySpec.build())
    cursor.open()
    with pytest.raises(InvalidStateError):
        cursor.open()


def test_scroll_id_follows_latest_page_and_is_cleared() -> None:
    transport = FakeTransport(split_batches(make_hits(4), [2, 2]))
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=2, scroll_timeout="1m"))
    cursor.open()
    assert cursor.scroll_id == "scroll-0"

    _read_all(cursor)
    assert transport.calls[1] == ("continue", "scroll-0", "1m")
    assert transport.calls[2] == ("continue", "scroll-1", "1m")

    cursor.close()
    assert transport.cleared == ["scroll-2"]
    cursor.close()
    assert transport.cleared == ["scroll-2"]


def test_total_hits_refresh_and_progress() -> None:
    transport = FakeTransport(split_batches(make_hits(4), [2, 2]), total_hits=4)
    cursor = ScrollCursor(transport, QuerySpec.build(batch_size=2))
    cursor.open()
    cursor.advance()

    assert cursor.hit_count == 4
    assert cursor.read_percent == pytest.approx(0.25)
    assert cursor.remaining_count == 3
