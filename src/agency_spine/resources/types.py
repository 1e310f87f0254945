"""Value types shared by the Resource Access Protocol and its callers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

Scalar = Union[str, int, float, bool, Decimal, date, datetime, None]

# Field name -> scalar, in insertion order.
Record = dict[str, Scalar]

# Field name -> equality value, ANDed.
Filters = Mapping[str, Scalar]

# Free-form statement parameters: positional (param0, param1, ...) or by name.
StatementParams = Union[Sequence[Scalar], Mapping[str, Scalar], None]


@dataclass(frozen=True)
class MutationOutcome:
    """Result of insert / update / delete.

    A delete that matches nothing is a negative outcome, not an error.
    """

    success: bool
    message: str
    affected_rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ColumnInfo:
    """One column of a resource as reported by the store's metadata."""

    name: str
    data_type: str
    nullable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "column_name": self.name,
            "data_type": self.data_type,
            "is_nullable": "YES" if self.nullable else "NO",
        }


__all__ = [
    "Scalar",
    "Record",
    "Filters",
    "StatementParams",
    "MutationOutcome",
    "ColumnInfo",
]
