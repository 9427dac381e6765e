"""Registry of named services.

The registry is an explicit object handed to whoever needs it; there is no
process-wide instance. Whether it is safe to share across threads is decided
at construction time by the ``ServiceStore`` it is given.

Architecture:
    ``ServiceRegistry`` delegates storage to a small capability protocol
    (``store`` / ``load`` / ``remove`` / ``names``):
    - ``DictStore``: plain dict, for single-threaded (event loop) use
    - ``LockingStore``: dict guarded by a ``threading.Lock``
"""

from __future__ import annotations

import threading
from typing import Protocol

from .core.service import Service


class ServiceStore(Protocol):
    """Storage capability used by ServiceRegistry."""

    def store(self, name: str, service: Service) -> None: ...

    def load(self, name: str) -> Service | None: ...

    def remove(self, name: str) -> None: ...

    def names(self) -> list[str]: ...


class DictStore:
    """Unsynchronized mapping store."""

    def __init__(self) -> None:
        self._services: dict[str, Service] = {}

    def store(self, name: str, service: Service) -> None:
        self._services[name] = service

    def load(self, name: str) -> Service | None:
        return self._services.get(name)

    def remove(self, name: str) -> None:
        self._services.pop(name, None)

    def names(self) -> list[str]:
        return list(self._services)


class LockingStore(DictStore):
    """Mapping store safe for concurrent use from several threads."""

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()

    def store(self, name: str, service: Service) -> None:
        with self._lock:
            super().store(name, service)

    def load(self, name: str) -> Service | None:
        with self._lock:
            return super().load(name)

    def remove(self, name: str) -> None:
        with self._lock:
            super().remove(name)

    def names(self) -> list[str]:
        with self._lock:
            return super().names()


class ServiceRegistry:
    """Maps names to Service configurations.

    Example:
        >>> registry = ServiceRegistry.safe()
        >>> registry.store("github", Service("https://api.github.com"))
        >>> registry.load("github").get("/zen")
    """

    def __init__(self, store: ServiceStore | None = None) -> None:
        self._store = store if store is not None else DictStore()

    @classmethod
    def unsafe(cls) -> ServiceRegistry:
        """Registry backed by a plain dict."""
        return cls(DictStore())

    @classmethod
    def safe(cls) -> ServiceRegistry:
        """Registry backed by a lock-guarded dict."""
        return cls(LockingStore())

    def store(self, name: str, service: Service) -> None:
        self._store.store(name, service)

    def load(self, name: str) -> Service | None:
        return self._store.load(name)

    def remove(self, name: str) -> None:
        """Remove a service. Unknown names are ignored."""
        self._store.remove(name)

    def names(self) -> list[str]:
        return self._store.names()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._store.load(name) is not None

    async def close(self) -> None:
        """Close the shared client of every registered service."""
        for name in self.names():
            service = self.load(name)
            if service is not None:
                await service.close()
