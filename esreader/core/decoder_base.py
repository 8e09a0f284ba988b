# esreader/core/decoder_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from .base_stage import Stage
from .errors import DecodeError
from .registry import Registry
from .transport_base import Hit

Record = Dict[str, Any]


class Decoder(Stage, ABC):
    """
    Abstract base for hit decoders.
    Implement map_hit(); callers use decode(), which turns any exception raised
    while decoding into DecodeError so one bad hit never ends a read.
    Prefer stateless logic; if stateful, create resources in open().
    Return None from map_hit() to drop a hit.
    """

    @abstractmethod
    def map_hit(self, hit: Hit) -> Optional[Record]:
        """
        Decode one hit.
        Return:
          - a dict (kept) or
          - None (dropped)
        """
        ...

    def decode(self, hit: Hit) -> Optional[Record]:
        try:
            return self.map_hit(hit)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError(f"cannot decode hit {hit.get('_id')!r}: {exc!r}") from exc


decoders: Registry[Decoder] = Registry("decoder")


@decoders.register("source")
class SourceDecoder(Decoder):
    """Flatten a hit into {"_id": ..., **_source}."""

    def map_hit(self, hit: Hit) -> Optional[Record]:
        source = hit["_source"]
        if not isinstance(source, dict):
            raise DecodeError(f"hit {hit.get('_id')!r} has no _source object")
        return {"_id": hit["_id"], **source}


@decoders.register("hit")
class HitDecoder(Decoder):
    """Pass the raw hit through unchanged (index, id, score, source, sort)."""

    def map_hit(self, hit: Hit) -> Optional[Record]:
        return dict(hit)


class FunctionDecoder(Decoder):
    """Adapt a plain callable `decode(hit) -> record` to the Decoder interface."""

    def __init__(self, fn: Callable[[Hit], Optional[Record]]) -> None:
        self.fn = fn

    def map_hit(self, hit: Hit) -> Optional[Record]:
        return self.fn(hit)


__all__ = ["decoders", "Decoder", "SourceDecoder", "HitDecoder", "FunctionDecoder", "Record"]
