# esreader/extractors/elasticsearch/client.py
from __future__ import annotations

from typing import Any, Dict, Mapping

from elasticsearch import ApiError, Elasticsearch, TransportError

from esreader.core.config import ClientConfig, QuerySpec
from esreader.core.errors import ProtocolError
from esreader.core.filters import compose_filter
from esreader.core.transport_base import ScrollPage
from esreader.utils.log import log

# Script sort used for randomized reads; "_doc" order is the cheapest otherwise.
RANDOM_SORT: Dict[str, Any] = {
    "_script": {"type": "number", "script": {"source": "Math.random()"}, "order": "asc"}
}
DOC_ORDER_SORT = ["_doc"]


class ElasticsearchScrollClient:
    """
    ScrollTransport backed by the official Elasticsearch client.
    Client and transport errors, and responses missing the scroll fields,
    are reported as ProtocolError.
    """

    def __init__(self, client: Elasticsearch) -> None:
        self.client = client

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> ElasticsearchScrollClient:
        kwargs: Dict[str, Any] = {
            "hosts": cfg.hosts,
            "verify_certs": cfg.verify_certs,
            "request_timeout": cfg.request_timeout,
        }
        if cfg.username:
            kwargs["basic_auth"] = (cfg.username, cfg.password or "")
        return cls(Elasticsearch(**kwargs))

    def build_request(self, spec: QuerySpec) -> Dict[str, Any]:
        """Keyword arguments for the initial Elasticsearch.search() call."""
        request: Dict[str, Any] = {
            "index": list(spec.indexes) or None,
            "size": spec.batch_size,
            "scroll": spec.scroll_timeout,
            "track_total_hits": True,
            "sort": [RANDOM_SORT] if spec.random else DOC_ORDER_SORT,
        }
        if spec.query is not None:
            request["query"] = spec.query
        post_filter = compose_filter(spec.with_fields, spec.without_fields)
        if post_filter is not None:
            request["post_filter"] = post_filter
        return request

    def open_scroll(self, spec: QuerySpec) -> ScrollPage:
        request = self.build_request(spec)
        log.debug("open scroll: %s", request)
        try:
            response = self.client.search(**request)
        except (ApiError, TransportError) as exc:
            raise ProtocolError(f"search rejected: {exc}") from exc
        return _to_page(response)

    def continue_scroll(self, scroll_id: str, scroll_timeout: str) -> ScrollPage:
        try:
            response = self.client.scroll(scroll_id=scroll_id, scroll=scroll_timeout)
        except (ApiError, TransportError) as exc:
            raise ProtocolError(f"scroll failed: {exc}") from exc
        return _to_page(response)

    def clear_scroll(self, scroll_id: str) -> None:
        try:
            self.client.clear_scroll(scroll_id=scroll_id)
        except (ApiError, TransportError) as exc:
            raise ProtocolError(f"clear_scroll failed: {exc}") from exc

    def close(self) -> None:
        self.client.close()


# ------------ helpers ------------


def _to_page(response: Mapping[str, Any]) -> ScrollPage:
    """Pull scroll id, hits and total out of a search/scroll response."""
    body = getattr(response, "body", response)
    try:
        hits = body["hits"]
        return ScrollPage(
            scroll_id=body.get("_scroll_id"),
            hits=tuple(hits["hits"]),
            total_hits=_total(hits.get("total", 0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProtocolError(f"malformed scroll response: {exc!r}") from exc


def _total(total: Any) -> int:
    # 7.x+ reports {"value": n, "relation": "eq"}, older clusters a bare int
    if isinstance(total, Mapping):
        return int(total["value"])
    return int(total)
