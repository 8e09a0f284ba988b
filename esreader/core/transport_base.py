# esreader/core/transport_base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Tuple

if TYPE_CHECKING:
    from .config import QuerySpec

Hit = Dict[str, Any]


@dataclass(frozen=True)
class ScrollPage:
    """
    One batch returned by an open- or continue-scroll call.
    - scroll_id: handle to pass to the next continue-scroll (may change between calls)
    - hits: the batch, in cluster order; empty means the scroll is used up
    - total_hits: total matches reported by the cluster with this batch
    """

    scroll_id: Optional[str]
    hits: Tuple[Hit, ...]
    total_hits: int


class ScrollTransport(Protocol):
    """
    The three cluster calls the cursor protocol needs.
    Implementations raise ProtocolError for any failure (network, auth, bad response).
    """

    def open_scroll(self, spec: QuerySpec) -> ScrollPage: ...

    def continue_scroll(self, scroll_id: str, scroll_timeout: str) -> ScrollPage: ...

    def clear_scroll(self, scroll_id: str) -> None: ...


__all__ = ["Hit", "ScrollPage", "ScrollTransport"]
