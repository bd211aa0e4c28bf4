"""Read-only SQLite query loading: rows in, nested lists of plain values out."""
__version__ = "0.1.0"

from .errors import (
    SqlError, ConnectError, CompileError, RunError, RowReadError, CellReadError,
)
from .services.query_svc import sql, load_sql

__all__ = [
    "sql", "load_sql",
    "SqlError", "ConnectError", "CompileError", "RunError", "RowReadError", "CellReadError",
]
