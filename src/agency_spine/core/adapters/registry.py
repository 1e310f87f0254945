"""Database adapter registry and factory.

Manifesto:
    Consumers should never hard-code adapter class names. The registry maps
    backend names to factories and ``get_adapter()`` builds a configured,
    not-yet-connected adapter from ``StoreSettings``.

Tags:
    agency-spine, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable

from agency_spine.core.errors import ConfigError
from agency_spine.core.settings import StoreSettings

from .base import DatabaseAdapter
from .types import DatabaseType

AdapterFactory = Callable[[StoreSettings], DatabaseAdapter]


def _sqlite_factory(settings: StoreSettings) -> DatabaseAdapter:
    from .sqlite import SQLiteAdapter

    return SQLiteAdapter(path=settings.path, timeout=float(settings.connect_timeout))


def _postgresql_factory(settings: StoreSettings) -> DatabaseAdapter:
    from .postgresql import PostgreSQLAdapter

    return PostgreSQLAdapter(settings)


class AdapterRegistry:
    """
    Registry for database adapter factories.

    Pre-registered adapters:
    - ``sqlite`` -- :class:`SQLiteAdapter`
    - ``postgresql`` / ``postgres`` -- :class:`PostgreSQLAdapter`
    """

    def __init__(self):
        self._factories: dict[str, AdapterFactory] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default adapters."""
        self.register(DatabaseType.SQLITE.value, _sqlite_factory)
        self.register(DatabaseType.POSTGRESQL.value, _postgresql_factory)
        self.register("postgres", _postgresql_factory)  # Alias

    def register(self, name: str, factory: AdapterFactory) -> None:
        """Register an adapter factory."""
        self._factories[name.lower()] = factory

    def create(self, settings: StoreSettings) -> DatabaseAdapter:
        """Create an adapter for ``settings.backend``."""
        name = settings.backend.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._factories[name](settings)

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(settings: StoreSettings) -> DatabaseAdapter:
    """
    Get a database adapter for the configured backend.

    Usage:
        adapter = get_adapter(StoreSettings(backend="sqlite", path="agency.db"))
    """
    return adapter_registry.create(settings)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
