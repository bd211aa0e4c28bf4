# sqlsource/services/query_svc.py
from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from ..db import open_readonly, resolve_source
from ..domain.cells import Row, to_row
from ..errors import CompileError, RowReadError, RunError
from ..logs import OperationLogContext

logger = logging.getLogger(__name__)

# sqlite3 reports some compile-time problems outside sqlite3.Error:
# ValueError for embedded NUL, sqlite3.Warning for multiple statements (<3.12)
_ENGINE_ERRORS = (sqlite3.Error, sqlite3.Warning, ValueError)


def _is_binding_error(e: Exception) -> bool:
    # prepare succeeded but the statement wants parameters; none are ever bound
    return isinstance(e, sqlite3.ProgrammingError) and "bindings" in str(e)


def _prepare_and_run(conn: sqlite3.Connection, query: str) -> sqlite3.Cursor:
    """
    Compile and start ``query`` with no bound parameters.

    sqlite3 prepares and steps inside one ``execute`` call. The trace callback
    fires when the first step starts, so an error seen before it is a compile
    error and anything after it is a run error. A placeholder the statement
    cannot bind is a run error too.
    """
    started: list[str] = []
    conn.set_trace_callback(started.append)
    try:
        return conn.execute(query, ())
    except _ENGINE_ERRORS as e:
        if started or _is_binding_error(e):
            raise RunError(e) from e
        raise CompileError(e) from e
    finally:
        conn.set_trace_callback(None)


def sql(source: str, query: str) -> List[Row]:
    """
    Run ``query`` against the SQLite file at ``source`` and return every row.

    Each row is a list with one value per result column: None, int, float,
    str (invalid UTF-8 replaced with U+FFFD) or bytes. Header rows are not
    included. The file is opened read-only and closed before returning.

    Raises a ``SqlError`` subclass naming the failed phase.
    """
    with open_readonly(source) as conn:
        logger.debug("opened %s read-only", source)
        cur = _prepare_and_run(conn, query)
        col_count = len(cur.description or ())
        logger.debug("compiled query with %d columns", col_count)

        rows: List[Row] = []
        while True:
            try:
                raw = cur.fetchone()
            except _ENGINE_ERRORS as e:
                raise RowReadError(e) from e
            if raw is None:
                break
            rows.append(to_row(raw, col_count))
    logger.debug("read %d rows from %s", len(rows), source)
    return rows


def load_sql(
    source: str,
    query: str,
    root: Optional[str] = None,
    log: Optional[OperationLogContext] = None,
) -> List[Row]:
    """Resolve ``source`` against ``root`` (or the configured root dir), then run ``sql``."""
    if log is not None:
        log.set_query(source, query)
    path = resolve_source(source, root)
    if log is not None:
        log.set_query(path, query)
    rows = sql(path, query)
    if log is not None:
        log.set_row_count(len(rows))
    return rows
