"""
Error channel of the sql loader.

Every failure is one string: the phase prefix plus the engine's own text,
e.g. ``failed to compile sql query (near "SELEKT": syntax error)``.
Subclasses only exist so callers and tests can tell phases apart.
"""
from __future__ import annotations


class SqlError(Exception):
    prefix = "sql query failed"

    def __init__(self, detail: object):
        self.detail = str(detail)
        super().__init__(f"{self.prefix} ({self.detail})")


class ConnectError(SqlError):
    prefix = "failed to establish connection to the database"


class CompileError(SqlError):
    prefix = "failed to compile sql query"


class RunError(SqlError):
    prefix = "failed to run sql query"


class RowReadError(SqlError):
    prefix = "failed to read row from sql query"


class CellReadError(SqlError):
    prefix = "failed to read cell from sql query"
