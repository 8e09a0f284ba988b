# esreader/core/reader.py
from __future__ import annotations

import threading
import time
from typing import Iterator, List, Optional

from ..utils.log import log
from .base_stage import Stage
from .buffer import RecordBuffer
from .config import QuerySpec, ReaderConfig
from .cursor import CursorState, ScrollCursor
from .decoder_base import Decoder, Record, decoders
from .errors import InvalidStateError
from .transport_base import ScrollTransport
from .worker import FetchWorker, ReadProgress


class ScrollReader(Stage):
    """
    What downstream code holds to read one scroll session:
      - start(spec) launches a background FetchWorker against a fresh cursor
      - drain() hands over whatever has been fetched since the last drain
      - stop() winds the worker down (bounded wait, then forced)
    An empty drain() means "nothing new yet"; check is_session_exhausted() to know
    whether more can come. Protocol failures never raise here: they end the
    session, and show up through `failed` / `error` and the logs.
    """

    def __init__(
        self,
        transport: ScrollTransport,
        config: Optional[ReaderConfig] = None,
        decoder: Optional[Decoder] = None,
    ) -> None:
        self.transport = transport
        self.cfg = config or ReaderConfig()
        self.decoder = decoder or decoders.create(self.cfg.decoder)
        self._lock = threading.Lock()
        self._buffer: Optional[RecordBuffer] = None
        self._cursor: Optional[ScrollCursor] = None
        self._worker: Optional[FetchWorker] = None
        self._abandoned = False

    # ---------------------- public entry points ----------------------

    def start(self, spec: QuerySpec) -> None:
        with self._lock:
            if self._worker is not None:
                raise InvalidStateError("reader already started; use a new ScrollReader per session")
            self._buffer = RecordBuffer(self.cfg.threading.buffer_capacity)
            self._cursor = ScrollCursor(self.transport, spec)
            self._worker = FetchWorker(self._cursor, self.decoder, self._buffer)
            log.debug(
                "starting scroll read: indexes=%s batch_size=%d timeout=%s limit=%d",
                ",".join(spec.indexes) or "<all>",
                spec.batch_size,
                spec.scroll_timeout,
                spec.limit,
            )
            self._worker.start()

    def drain(self) -> List[Record]:
        """Remove and return every record buffered since the last drain."""
        return self._require_buffer().drain()

    def stop(self) -> None:
        """
        Ask the worker to stop between hits and wait up to stop_grace_seconds.
        If it is still running after that (stuck in a network call), give up on it
        and discard whatever is buffered.
        """
        worker = self._worker
        if worker is None or worker.finished.is_set():
            return
        worker.stop()
        self._buffer.close()
        grace = self.cfg.threading.stop_grace_seconds
        worker.join(timeout=grace)
        if worker.is_alive():
            self._abandoned = True
            dropped = self._buffer.discard()
            log.warning(
                "fetch worker did not stop within %.1fs; forcing shutdown, %d buffered records dropped",
                grace,
                dropped,
            )

    def close(self) -> None:
        self.stop()
        log.info("reader done")

    def iter_batches(self) -> Iterator[List[Record]]:
        """Yield non-empty drained batches until the session is over and the buffer is empty."""
        interval = self.cfg.threading.poll_interval_seconds
        while True:
            # check before draining so records written just before the end are not missed
            exhausted = self.is_session_exhausted()
            batch = self.drain()
            if batch:
                yield batch
            elif exhausted:
                return
            else:
                time.sleep(interval)

    # ---------------------- session state ----------------------

    def is_session_exhausted(self) -> bool:
        """True once the worker will write nothing more (done, failed, or stopped)."""
        worker = self._worker
        if worker is None:
            return False
        return self._abandoned or worker.finished.is_set()

    @property
    def started(self) -> bool:
        return self._worker is not None

    @property
    def state(self) -> CursorState:
        return self._cursor.state if self._cursor is not None else CursorState.UNINITIALIZED

    @property
    def failed(self) -> bool:
        return self.state is CursorState.FAILED

    @property
    def error(self) -> Optional[BaseException]:
        return self._cursor.error if self._cursor is not None else None

    def progress(self) -> ReadProgress:
        return self._worker.progress if self._worker is not None else ReadProgress()

    def hits_reported(self) -> int:
        return self.progress().hits_reported

    def records_delivered(self) -> int:
        return self.progress().records_delivered

    # ---------------------- internals ----------------------

    def _require_buffer(self) -> RecordBuffer:
        if self._buffer is None:
            raise InvalidStateError("reader not started. Call .start(spec) first.")
        return self._buffer


__all__ = ["ScrollReader"]
