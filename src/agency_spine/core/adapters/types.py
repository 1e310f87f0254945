"""Database types and statement results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


@dataclass
class StatementResult:
    """Rows and affected-row count of one executed statement.

    ``rows`` is empty for statements without a result set. ``rowcount`` is
    the driver's value: ``-1`` when the driver cannot tell (SELECT on SQLite).
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1


__all__ = [
    "DatabaseType",
    "StatementResult",
]
