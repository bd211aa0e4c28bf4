from __future__ import annotations

# sqlsource/db.py
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import os
import yaml

from .errors import ConnectError

# Setting resolution order:
# 1) environment variable (highest priority)
# 2) config.yaml at the project root (test_* keys win when running under tests)
# 3) built-in default
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_LOG_DB = os.path.join(_PROJECT_ROOT, "sqlsource_log.db")
DEFAULT_MAX_QUERY_CHARS = 100_000
MEMORY_PATH = ":memory:"

_CONFIG_KEYS = ("root_dir", "log_db_path", "test_log_db_path", "max_query_chars")


def _read_config_yaml() -> dict:
    cfg_path = os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(cfg, dict):
        return {}
    out = {}
    for k in _CONFIG_KEYS:
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
        elif isinstance(v, int) and not isinstance(v, bool):
            out[k] = v
    return out


def _is_test_env() -> bool:
    return (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)


def get_root_dir() -> str:
    """Directory that relative source paths are resolved against."""
    env_root = os.environ.get("SQLSOURCE_ROOT")
    if env_root:
        return env_root
    cfg_root = _read_config_yaml().get("root_dir")
    if isinstance(cfg_root, str):
        return cfg_root
    return os.getcwd()


def get_log_db_path() -> str:
    env_path = os.environ.get("SQLSOURCE_LOG_DB")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("log_db_path")
    cfg_test = cfg.get("test_log_db_path")

    if env_path:
        path = env_path
    elif _is_test_env() and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _DEFAULT_LOG_DB

    # the log db is ours to create, unlike query sources
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_max_query_chars() -> int:
    raw = os.environ.get("SQLSOURCE_MAX_QUERY_CHARS") or _read_config_yaml().get("max_query_chars")
    if raw is None:
        return DEFAULT_MAX_QUERY_CHARS
    try:
        return int(raw)
    except (TypeError, ValueError):
        return DEFAULT_MAX_QUERY_CHARS


def resolve_source(path: str, root: str | None = None) -> str:
    """
    Resolve a source path the way documents reference their data files:
    absolute paths are kept, relative ones are joined onto ``root``
    (or the configured root dir). Existence is not checked here.
    """
    if not path or not path.strip():
        raise ConnectError("empty path")
    if path == MEMORY_PATH:
        return path
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = Path(root or get_root_dir()) / p
    return os.path.normpath(str(p.absolute()))


def _lossy_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


@contextmanager
def open_readonly(path: str) -> Iterator[sqlite3.Connection]:
    """
    Open ``path`` with SQLite's read-only mode (``mode=ro``), never rw/rwc,
    so a missing file is reported instead of created. ``:memory:`` opens an
    empty read-only in-memory database.
    Open failures surface as ConnectError.
    No type detection: cells come back as None/int/float/str/bytes only.
    The connection is closed on every exit path.
    """
    if path == MEMORY_PATH:
        uri = "file::memory:?mode=ro"
    else:
        uri = Path(os.path.abspath(path)).as_uri() + "?mode=ro"
    try:
        conn = sqlite3.connect(
            uri,
            uri=True,
            detect_types=0,
            check_same_thread=False,
            isolation_level=None,
        )
    except sqlite3.Error as e:
        raise ConnectError(e) from e
    try:
        conn.text_factory = _lossy_text
        try:
            # sqlite opens lazily; read the header now so a non-database
            # file fails here rather than at compile time
            conn.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error as e:
            raise ConnectError(e) from e
        yield conn
    finally:
        conn.close()


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Writable connection to the operation log database.
    Uses ``sqlite3.Row`` rows; never used for query sources.
    """
    path = db_path or get_log_db_path()
    conn = sqlite3.connect(
        path,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()
