# esreader/extractors/elasticsearch/extractor.py
from __future__ import annotations

from typing import Iterator, Optional

from esreader.core.config import ClientConfig, QuerySpec
from esreader.core.cursor import ScrollCursor, iter_cursor
from esreader.core.decoder_base import Decoder, Record, SourceDecoder
from esreader.core.errors import DecodeError
from esreader.core.extractor_base import Extractor
from esreader.utils.log import log

from .client import ElasticsearchScrollClient


class ElasticsearchExtractor(Extractor):
    """
    Foreground extractor that streams decoded records from an Elasticsearch scroll.
    Same cursor as ScrollReader, without the background thread: records are
    fetched as the caller iterates. Hits that fail to decode are logged and skipped;
    a scroll error ends the iteration early (check .cursor.state afterwards).
    """

    def __init__(
        self,
        spec: QuerySpec,
        client_config: Optional[ClientConfig] = None,
        decoder: Optional[Decoder] = None,
        client: Optional[ElasticsearchScrollClient] = None,
    ) -> None:
        self.spec = spec
        self.client_config = client_config or ClientConfig()
        self.decoder = decoder or SourceDecoder()
        self.client = client
        self._owns_client = client is None
        self.cursor: Optional[ScrollCursor] = None

    def open(self) -> None:
        """Initialize the Elasticsearch client."""
        if self.client is None:
            self.client = ElasticsearchScrollClient.from_config(self.client_config)
        self.decoder.open()

    def iter_records(self) -> Iterator[Record]:
        """Stream documents one by one as dicts."""
        assert self.client, "Extractor not opened. Call .open() first."
        self.cursor = ScrollCursor(self.client, self.spec)
        self.cursor.open()
        try:
            for hit in iter_cursor(self.cursor):
                try:
                    record = self.decoder.decode(hit)
                except DecodeError as exc:
                    log.warning("skipping hit: %s", exc)
                    continue
                if record is not None:
                    yield record
        finally:
            self.cursor.close()

    def close(self) -> None:
        """Close client."""
        self.decoder.close()
        if self.client and self._owns_client:
            self.client.close()
            self.client = None
