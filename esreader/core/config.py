# esreader/core/config.py
from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..utils.log import log
from .errors import ConfigError

DEFAULT_BATCH_SIZE = 500
DEFAULT_SCROLL_TIMEOUT = "5m"
DEFAULT_LIMIT = 1000 * 1000 * 1000  # effectively unbounded

# Elasticsearch time units: 30s, 5m, 1h, 250ms, ...
_TIME_UNIT_RE = re.compile(r"^\d+(d|h|m|s|ms|micros|nanos)$")


@dataclass
class ClientConfig:
    """Connection settings for the Elasticsearch client."""

    hosts: list[str] = field(default_factory=lambda: ["http://localhost:9200"])
    username: Optional[str] = None
    password: Optional[str] = None
    verify_certs: bool = True
    request_timeout: float = 60.0  # seconds, per transport call


@dataclass
class ThreadingConfig:
    """Knobs for the background fetch worker and its buffer."""

    buffer_capacity: Optional[int] = 10_000  # records; None = unbounded
    stop_grace_seconds: float = 10.0  # wait for the worker before forcing shutdown
    poll_interval_seconds: float = 0.5  # used by ScrollReader.iter_batches()


@dataclass
class ReaderConfig:
    """
    Everything a ScrollReader needs besides the query itself.
    Built once by the caller and handed to the reader; there is no global lookup.
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    threading: ThreadingConfig = field(default_factory=ThreadingConfig)
    # Registry name of the decoder used when none is passed explicitly
    decoder: str = "source"

    def __post_init__(self) -> None:
        capacity = self.threading.buffer_capacity
        if capacity is not None and (not isinstance(capacity, int) or capacity <= 0):
            raise ConfigError(f"buffer_capacity must be a positive int or None, got {capacity!r}")
        if self.threading.stop_grace_seconds < 0:
            raise ConfigError("stop_grace_seconds must be >= 0")
        if self.threading.poll_interval_seconds <= 0:
            raise ConfigError("poll_interval_seconds must be > 0")
        if not self.client.hosts:
            raise ConfigError("client.hosts must not be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ReaderConfig:
        """Build from a plain dict, e.g. {"client": {...}, "threading": {...}, "decoder": "hit"}."""
        _reject_unknown(cls, data, "reader")
        try:
            return cls(
                client=ClientConfig(**_section(data, "client", ClientConfig)),
                threading=ThreadingConfig(**_section(data, "threading", ThreadingConfig)),
                decoder=str(data.get("decoder", "source")),
            )
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc


@dataclass(frozen=True)
class QuerySpec:
    """
    Immutable description of one scroll read.
    Use QuerySpec.build() (or from_mapping()) to get defaults and validation;
    the plain constructor trusts its arguments.
    """

    indexes: Tuple[str, ...] = ()  # empty = all indexes
    query: Optional[Dict[str, Any]] = None
    with_fields: Tuple[str, ...] = ()
    without_fields: Tuple[str, ...] = ()
    batch_size: int = DEFAULT_BATCH_SIZE
    scroll_timeout: str = DEFAULT_SCROLL_TIMEOUT
    random: bool = False
    limit: int = DEFAULT_LIMIT

    @classmethod
    def build(
        cls,
        indexes: Sequence[str] | str = (),
        query: Optional[Mapping[str, Any]] = None,
        with_fields: Sequence[str] = (),
        without_fields: Sequence[str] = (),
        batch_size: Optional[int] = None,
        scroll_timeout: Optional[str | int] = None,
        random: bool = False,
        limit: Optional[int] = None,
    ) -> QuerySpec:
        """Validate and normalize. Out-of-range values fall back to defaults; wrong types raise."""
        if query is not None and not isinstance(query, Mapping):
            raise ConfigError(f"query must be a mapping, got {type(query).__name__}")
        return cls(
            indexes=_names("indexes", indexes),
            query=dict(query) if query is not None else None,
            with_fields=_names("with_fields", with_fields),
            without_fields=_names("without_fields", without_fields),
            batch_size=_batch_size(batch_size),
            scroll_timeout=_scroll_timeout(scroll_timeout),
            random=bool(random),
            limit=_limit(limit),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> QuerySpec:
        _reject_unknown(cls, data, "query")
        return cls.build(**data)

    @property
    def unbounded(self) -> bool:
        return self.limit >= DEFAULT_LIMIT


# ------------ helpers ------------


def _names(name: str, value: Sequence[str] | str | None) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Sequence):
        raise ConfigError(f"{name} must be a list of strings, got {type(value).__name__}")
    if not all(isinstance(v, str) and v for v in value):
        raise ConfigError(f"{name} must be a list of non-empty strings, got {value!r}")
    return tuple(value)


def _batch_size(value: Optional[int]) -> int:
    if value is None:
        return DEFAULT_BATCH_SIZE
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"batch_size must be an int, got {value!r}")
    if value <= 0:
        log.warning("batch_size %d is not positive, using %d", value, DEFAULT_BATCH_SIZE)
        return DEFAULT_BATCH_SIZE
    return value


def _scroll_timeout(value: Optional[str | int]) -> str:
    if value is None:
        return DEFAULT_SCROLL_TIMEOUT
    if isinstance(value, bool):
        raise ConfigError(f"scroll_timeout must be a duration, got {value!r}")
    if isinstance(value, int):
        if value >= 0:
            return f"{value}s"
    elif isinstance(value, str):
        if _TIME_UNIT_RE.match(value.strip()):
            return value.strip()
    else:
        raise ConfigError(f"scroll_timeout must be a str or int, got {type(value).__name__}")
    log.warning("scroll_timeout %r is not a valid duration, using %s", value, DEFAULT_SCROLL_TIMEOUT)
    return DEFAULT_SCROLL_TIMEOUT


def _limit(value: Optional[int]) -> int:
    if value is None:
        return DEFAULT_LIMIT
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"limit must be an int, got {value!r}")
    if value < 0:
        log.warning("limit %d is negative, reading without a limit", value)
        return DEFAULT_LIMIT
    return value


def _reject_unknown(cls: type, data: Mapping[str, Any], what: str) -> None:
    unknown = set(data) - {f.name for f in fields(cls)}
    if unknown:
        raise ConfigError(f"unknown {what} option(s): {', '.join(sorted(unknown))}")


def _section(data: Mapping[str, Any], key: str, cls: type) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"'{key}' must be a mapping")
    _reject_unknown(cls, section, key)
    return dict(section)
