# esreader/core/buffer.py
from __future__ import annotations

import threading
from typing import List, Optional

from .decoder_base import Record


class RecordBuffer:
    """
    FIFO channel between the fetch worker (single writer) and any number of drainers.

    put() blocks while the buffer holds `capacity` records, so a slow consumer bounds
    memory instead of letting the worker race ahead. drain() swaps the backing list
    for an empty one under the lock: every record is returned by exactly one drain,
    in insertion order.
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        if capacity is not None and capacity <= 0:
            raise ValueError("capacity must be positive or None")
        self.capacity = capacity
        self._items: List[Record] = []
        self._closed = False
        self._cond = threading.Condition()

    def put(self, record: Record, timeout: Optional[float] = None) -> bool:
        """
        Append one record, waiting for room if the buffer is full.
        Returns False (record not stored) if the buffer is closed, or if
        `timeout` seconds pass without room.
        """
        with self._cond:
            if not self._cond.wait_for(self._writable, timeout=timeout):
                return False
            if self._closed:
                return False
            self._items.append(record)
            return True

    def drain(self) -> List[Record]:
        """Remove and return everything currently buffered."""
        with self._cond:
            records, self._items = self._items, []
            self._cond.notify_all()
        return records

    def close(self) -> None:
        """Refuse further puts and wake a blocked writer. Buffered records stay drainable."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def discard(self) -> int:
        """Drop buffered records; returns how many were dropped."""
        return len(self.drain())

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def _writable(self) -> bool:
        return self._closed or self.capacity is None or len(self._items) < self.capacity


__all__ = ["RecordBuffer"]
