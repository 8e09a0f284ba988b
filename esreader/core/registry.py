# esreader/core/registry.py
from __future__ import annotations

from typing import Callable, Dict, Generic, Optional, Type, TypeVar

from .errors import ConfigError

T = TypeVar("T")


class Registry(Generic[T]):
    """
    Name -> class lookup, so config files can pick a component by name.
    Names are case-insensitive. Example:
        decoders = Registry("decoder")

        @decoders.register("source")
        class SourceDecoder(Decoder): ...
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._classes: Dict[str, Type[T]] = {}

    def register(self, name: str) -> Callable[[Type[T]], Type[T]]:
        key = name.lower()

        def deco(cls: Type[T]) -> Type[T]:
            existing = self._classes.get(key)
            if existing is not None and existing is not cls:
                raise ValueError(f"{self.kind} '{name}' is already bound to {existing.__name__}")
            self._classes[key] = cls
            return cls

        return deco

    def get(self, name: str) -> Optional[Type[T]]:
        return self._classes.get(name.lower())

    def names(self) -> list[str]:
        return sorted(self._classes)

    def create(self, name: str) -> T:
        cls = self.get(name)
        if cls is None:
            raise ConfigError(f"unknown {self.kind} '{name}' (known: {', '.join(self.names())})")
        return cls()


__all__ = ["Registry"]
