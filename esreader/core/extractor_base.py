# esreader/core/extractor_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from itertools import islice
from typing import Iterator, List

from .base_stage import Stage
from .decoder_base import Record

Batch = List[Record]


class Extractor(Stage, ABC):
    """
    Pull-as-you-iterate record source: no thread, no buffer, records are fetched
    while the caller consumes them. Subclasses implement iter_records().
    """

    @abstractmethod
    def iter_records(self) -> Iterator[Record]:
        """Yield one record (dict) at a time (streaming, bounded memory)."""
        ...

    def iter_batches(self, batch_size: int) -> Iterator[Batch]:
        """Group iter_records() into lists of at most batch_size; the last one may be short."""
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        records = self.iter_records()
        while True:
            batch = list(islice(records, batch_size))
            if not batch:
                return
            yield batch


__all__ = ["Extractor", "Batch"]
