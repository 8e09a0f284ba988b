# esreader/core/errors.py
from __future__ import annotations


class ReaderError(Exception):
    """Base class for every error raised by esreader."""


class ConfigError(ReaderError):
    """A configuration value is malformed. Raised before any network call."""


class ProtocolError(ReaderError):
    """
    An open-scroll, continue-scroll or clear-scroll call failed
    (network, auth, rejected request, malformed response).
    Fatal to the session that hit it.
    """


class DecodeError(ReaderError):
    """A single hit could not be turned into a record. The hit is skipped."""


class InvalidStateError(ReaderError):
    """A reader or cursor was used out of order (double start, drain before start, ...)."""


__all__ = ["ReaderError", "ConfigError", "ProtocolError", "DecodeError", "InvalidStateError"]
