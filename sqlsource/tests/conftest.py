import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(autouse=True)
def log_db_path(tmp_path, monkeypatch):
    # Point the operation log at a temp DB, never a real one
    path = tmp_path / "oplog.db"
    monkeypatch.setenv("SQLSOURCE_LOG_DB", str(path))
    monkeypatch.delenv("SQLSOURCE_ROOT", raising=False)
    monkeypatch.delenv("SQLSOURCE_MAX_QUERY_CHARS", raising=False)
    from sqlsource.logs import ensure_log_schema
    ensure_log_schema()
    return str(path)


@pytest.fixture()
def sample_db(tmp_path):
    """
    t(id, n, i, r, s, b): row 1 holds one value of every storage class,
    rows 2-3 are plain integers/text.
    nums(x) ends with the one integer abs() cannot negate.
    """
    path = tmp_path / "sample.db"
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(
            """
            CREATE TABLE t(id INTEGER PRIMARY KEY, n, i, r, s, b);
            INSERT INTO t(id, n, i, r, s, b) VALUES (1, NULL, 42, 3.14, 'ab', x'00ff');
            INSERT INTO t(id, n, i, r, s, b) VALUES (2, NULL, 7, 0.5, 'cd', x'');
            INSERT INTO t(id, n, i, r, s, b) VALUES (3, NULL, -1, -2.25, '', x'01');
            CREATE TABLE bad_text(s TEXT);
            INSERT INTO bad_text(s) VALUES (CAST(x'61ff62' AS TEXT));
            CREATE TABLE nums(x INTEGER);
            INSERT INTO nums(x) VALUES (1), (2), (-9223372036854775808);
            """
        )
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def client(log_db_path):
    from sqlsource.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)
