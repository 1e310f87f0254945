"""Resource Access Protocol -- generic CRUD over named tables."""

from .catalog import SchemaCatalog
from .protocol import DEFAULT_ID_FIELD, ResourceAccess
from .statements import bind_params, compile_statement
from .types import ColumnInfo, Filters, MutationOutcome, Record, Scalar, StatementParams

__all__ = [
    "ResourceAccess",
    "SchemaCatalog",
    "DEFAULT_ID_FIELD",
    "bind_params",
    "compile_statement",
    "ColumnInfo",
    "Filters",
    "MutationOutcome",
    "Record",
    "Scalar",
    "StatementParams",
]
