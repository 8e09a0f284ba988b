"""Shared fakes: an in-memory scroll transport and helpers to wait on readers."""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, List, Optional, Sequence

import pytest

from esreader.core.config import QuerySpec
from esreader.core.errors import ProtocolError
from esreader.core.transport_base import ScrollPage


def make_hits(count: int, start: int = 0) -> List[Dict[str, Any]]:
    return [{"_id": f"doc-{i}", "_source": {"n": i}} for i in range(start, start + count)]


def split_batches(hits: Sequence[Dict[str, Any]], sizes: Sequence[int]) -> List[List[Dict[str, Any]]]:
    batches, pos = [], 0
    for size in sizes:
        batches.append(list(hits[pos : pos + size]))
        pos += size
    return batches


class FakeTransport:
    """
    Serves pre-built batches. Call 0 is the open-scroll, call k the k-th continue-scroll.
    Calls past the last batch return an empty page.
    """

    def __init__(
        self,
        batches: Sequence[Sequence[Dict[str, Any]]],
        total_hits: Optional[int] = None,
        fail_on_call: Optional[int] = None,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.batches = [tuple(b) for b in batches]
        self.total_hits = total_hits if total_hits is not None else sum(len(b) for b in batches)
        self.fail_on_call = fail_on_call
        self.gate = gate  # continue-scroll blocks until set
        self.calls: List[tuple] = []
        self.cleared: List[str] = []

    @property
    def fetch_calls(self) -> int:
        return len(self.calls)

    def open_scroll(self, spec: QuerySpec) -> ScrollPage:
        self.calls.append(("open", spec))
        return self._page()

    def continue_scroll(self, scroll_id: str, scroll_timeout: str) -> ScrollPage:
        self.calls.append(("continue", scroll_id, scroll_timeout))
        if self.gate is not None:
            self.gate.wait()
        return self._page()

    def clear_scroll(self, scroll_id: str) -> None:
        self.cleared.append(scroll_id)

    def _page(self) -> ScrollPage:
        n = len(self.calls) - 1
        if self.fail_on_call == n:
            raise ProtocolError(f"call {n} failed")
        hits = self.batches[n] if n < len(self.batches) else ()
        return ScrollPage(scroll_id=f"scroll-{n}", hits=hits, total_hits=self.total_hits)


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def hits_5() -> List[Dict[str, Any]]:
    return make_hits(5)
