"""Database adapters -- one execution interface over SQLite and PostgreSQL.

Architecture::

    DatabaseAdapter (base.py)        Abstract base: connect / disconnect / run
        |-- SQLiteAdapter            stdlib sqlite3 (development, tests)
        |-- PostgreSQLAdapter        psycopg 3 + psycopg_pool (production)

    AdapterRegistry (registry.py)    backend name -> adapter factory
    StatementResult (types.py)       rows + affected-row count

The PostgreSQL adapter is imported lazily by the registry so the sqlite
path never loads psycopg.
"""

from .base import DatabaseAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType, StatementResult

__all__ = [
    "DatabaseType",
    "StatementResult",
    "DatabaseAdapter",
    "SQLiteAdapter",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
