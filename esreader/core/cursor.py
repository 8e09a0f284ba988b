# esreader/core/cursor.py
from __future__ import annotations

import enum
from typing import Iterator, Optional, Tuple

from ..utils.log import log
from .config import QuerySpec
from .errors import InvalidStateError, ProtocolError
from .transport_base import Hit, ScrollPage, ScrollTransport

EXHAUSTED_POSITION = -1


class CursorState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


TERMINAL_STATES = frozenset({CursorState.EXHAUSTED, CursorState.FAILED})


class ScrollCursor:
    """
    One scroll session against the cluster, read one hit at a time.

    Holds the scroll id, the current batch and the position inside it. When the
    batch runs out, advance() fetches the next one with a continue-scroll call.
    The protocol is sequential (each call depends on the scroll id left by the
    previous one), so a cursor must only ever be driven by one thread.

    Terminal states:
      - EXHAUSTED: the cluster returned an empty batch, or `limit` hits were read
      - FAILED: a scroll call raised, or abort() was called; there is no retry
    """

    def __init__(self, transport: ScrollTransport, spec: QuerySpec) -> None:
        self.transport = transport
        self.spec = spec
        self.state = CursorState.UNINITIALIZED
        self.error: Optional[BaseException] = None
        self.scroll_id: Optional[str] = None
        self.batch: Tuple[Hit, ...] = ()
        self.position = 0
        self.total_hits = 0
        self.total_read = 0

    # ---------------------- protocol ----------------------

    def open(self) -> None:
        """Issue the initial search and load the first batch. Raises ProtocolError."""
        if self.state is not CursorState.UNINITIALIZED:
            raise InvalidStateError(f"cursor already opened (state={self.state.value})")
        if self.spec.limit == 0:
            log.debug("limit is 0, not opening a scroll")
            self._finish(CursorState.EXHAUSTED)
            return
        try:
            page = self.transport.open_scroll(self.spec)
        except ProtocolError as exc:
            self.error = exc
            self._finish(CursorState.FAILED)
            raise
        self.state = CursorState.ACTIVE
        self._load(page)
        log.debug(
            "scroll opened on %s: %d total hits, first batch of %d",
            ",".join(self.spec.indexes) or "<all>",
            self.total_hits,
            len(page.hits),
        )

    def advance(self) -> Optional[Hit]:
        """
        Return the next hit, fetching a new batch when the current one is used up.
        Returns None once the cursor is exhausted or failed; no network call is made then.
        """
        if self.state is CursorState.UNINITIALIZED:
            raise InvalidStateError("cursor not opened. Call .open() first.")
        if self.is_exhausted():
            return None

        if self.position >= len(self.batch):
            try:
                page = self.transport.continue_scroll(self.scroll_id, self.spec.scroll_timeout)
            except Exception as exc:  # noqa: BLE001 - any scrolling error ends the session
                log.error("Unexpected scrolling error after %d hits: %s", self.total_read, exc)
                self.error = exc
                self._finish(CursorState.FAILED)
                return None
            self._load(page)
            if self.is_exhausted():
                return None

        hit = self.batch[self.position]
        self.position += 1
        self.total_read += 1
        return hit

    def abort(self, exc: BaseException) -> None:
        """Mark the session failed for a reason outside the scroll calls themselves."""
        self.error = exc
        self._finish(CursorState.FAILED)

    def is_exhausted(self) -> bool:
        return self.state in TERMINAL_STATES or self.total_read >= self.spec.limit

    def close(self) -> None:
        """Release the server-side scroll context. Never raises."""
        scroll_id, self.scroll_id = self.scroll_id, None
        if scroll_id is None:
            return
        try:
            self.transport.clear_scroll(scroll_id)
        except ProtocolError as exc:
            log.warning("could not clear scroll context: %s", exc)

    # ---------------------- progress ----------------------

    @property
    def hit_count(self) -> int:
        return self.total_hits

    @property
    def read_count(self) -> int:
        return self.total_read

    @property
    def read_percent(self) -> float:
        return self.total_read / self.total_hits if self.total_hits else 0.0

    @property
    def remaining_count(self) -> int:
        target = min(self.total_hits, self.spec.limit)
        return max(target - self.total_read, 0)

    # ---------------------- internals ----------------------

    def _load(self, page: ScrollPage) -> None:
        if page.scroll_id:
            self.scroll_id = page.scroll_id
        self.total_hits = page.total_hits
        self.batch = page.hits
        if page.hits:
            self.position = 0
        else:
            self._finish(CursorState.EXHAUSTED)

    def _finish(self, state: CursorState) -> None:
        self.state = state
        self.batch = ()
        self.position = EXHAUSTED_POSITION


def iter_cursor(cursor: ScrollCursor) -> Iterator[Hit]:
    """Lazily yield every hit of an opened cursor, in cluster order."""
    while not cursor.is_exhausted():
        hit = cursor.advance()
        if hit is None:
            return
        yield hit


__all__ = ["ScrollCursor", "CursorState", "iter_cursor", "EXHAUSTED_POSITION"]
