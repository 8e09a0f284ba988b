# esreader/core/worker.py
from __future__ import annotations

import threading
from dataclasses import dataclass

from ..utils.log import log
from .buffer import RecordBuffer
from .config import DEFAULT_LIMIT
from .cursor import ScrollCursor
from .decoder_base import Decoder
from .errors import DecodeError, ProtocolError


@dataclass(frozen=True)
class ReadProgress:
    """
    Point-in-time counters for one read session.
    - hits_reported: total matches the cluster reported with the latest batch
    - records_delivered: hits handed out by the cursor
    - records_buffered: decoded records pushed into the buffer
    - decode_failures: hits skipped because they did not decode
    - limit: the session's record limit; caps remaining_count
    """

    hits_reported: int = 0
    records_delivered: int = 0
    records_buffered: int = 0
    decode_failures: int = 0
    limit: int = DEFAULT_LIMIT

    @property
    def read_percent(self) -> float:
        if not self.hits_reported:
            return 0.0
        return self.records_delivered / self.hits_reported

    @property
    def remaining_count(self) -> int:
        target = min(self.hits_reported, self.limit)
        return max(target - self.records_delivered, 0)


class FetchWorker(threading.Thread):
    """
    Background thread that drives one ScrollCursor to the end.

    Sole writer of the cursor and the buffer. Stops when the cursor is exhausted or
    failed, when stop() is requested (checked between hits, never mid-call), or when
    the buffer is closed. `finished` is set once nothing more will be written.
    """

    def __init__(self, cursor: ScrollCursor, decoder: Decoder, buffer: RecordBuffer) -> None:
        super().__init__(name="esreader-fetch", daemon=True)
        self.cursor = cursor
        self.decoder = decoder
        self.buffer = buffer
        self.finished = threading.Event()
        self._stop_requested = threading.Event()
        self._lock = threading.Lock()
        self._progress = ReadProgress(limit=cursor.spec.limit)

    def stop(self) -> None:
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def progress(self) -> ReadProgress:
        with self._lock:
            return self._progress

    def run(self) -> None:
        try:
            try:
                self.decoder.open()
            except Exception as exc:  # noqa: BLE001 - a broken decoder ends the session
                log.error("could not open decoder %s: %s", type(self.decoder).__name__, exc)
                self.cursor.abort(exc)
                return
            try:
                self.cursor.open()
            except ProtocolError as exc:
                log.error("could not open scroll: %s", exc)
                return
            self._update()
            self._pump()
        finally:
            self.cursor.close()
            self._close_decoder()
            self.finished.set()
            p = self.progress
            log.info(
                "fetch done (%s): %d/%d hits read, %d buffered, %d skipped",
                self.cursor.state.value,
                p.records_delivered,
                p.hits_reported,
                p.records_buffered,
                p.decode_failures,
            )

    # ---------------------- internals ----------------------

    def _pump(self) -> None:
        while not self._stop_requested.is_set() and not self.cursor.is_exhausted():
            hit = self.cursor.advance()
            if hit is None:
                self._update()
                break
            try:
                record = self.decoder.decode(hit)
            except DecodeError as exc:
                log.warning("skipping hit: %s", exc)
                self._update(failed=1)
                continue
            if record is None:
                self._update()
                continue
            if not self.buffer.put(record):
                log.debug("buffer closed, dropping remaining hits")
                self._update()
                break
            self._update(buffered=1)

    def _close_decoder(self) -> None:
        try:
            self.decoder.close()
        except Exception as exc:  # noqa: BLE001 - records already buffered stay valid
            log.warning("could not close decoder %s: %s", type(self.decoder).__name__, exc)

    def _update(self, buffered: int = 0, failed: int = 0) -> None:
        with self._lock:
            p = self._progress
            self._progress = ReadProgress(
                hits_reported=self.cursor.total_hits,
                records_delivered=self.cursor.total_read,
                records_buffered=p.records_buffered + buffered,
                decode_failures=p.decode_failures + failed,
                limit=p.limit,
            )


__all__ = ["FetchWorker", "ReadProgress"]
