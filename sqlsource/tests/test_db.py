import os
import sqlite3

import pytest

import sqlsource.db as db
from sqlsource.errors import ConnectError


def test_resolve_source_absolute_and_relative(tmp_path):
    abs_path = str(tmp_path / "a.db")
    assert db.resolve_source(abs_path) == os.path.normpath(abs_path)
    assert db.resolve_source("sub/../b.db", root=str(tmp_path)) == str(tmp_path / "b.db")


def test_resolve_source_rejects_blank():
    with pytest.raises(ConnectError):
        db.resolve_source("   ")


def test_root_dir_env_beats_config(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "_PROJECT_ROOT", str(tmp_path))
    (tmp_path / "config.yaml").write_text("root_dir: /from/config\n", encoding="utf-8")
    assert db.get_root_dir() == "/from/config"
    monkeypatch.setenv("SQLSOURCE_ROOT", "/from/env")
    assert db.get_root_dir() == "/from/env"


def test_root_dir_defaults_to_cwd(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "_PROJECT_ROOT", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    assert db.get_root_dir() == os.getcwd()


def test_broken_config_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "_PROJECT_ROOT", str(tmp_path))
    (tmp_path / "config.yaml").write_text("root_dir: [unclosed\n", encoding="utf-8")
    assert db._read_config_yaml() == {}


def test_log_db_path_prefers_test_key_under_pytest(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "_PROJECT_ROOT", str(tmp_path))
    monkeypatch.delenv("SQLSOURCE_LOG_DB", raising=False)
    test_db = tmp_path / "logs" / "test.db"
    (tmp_path / "config.yaml").write_text(
        f"log_db_path: {tmp_path / 'prod.db'}\ntest_log_db_path: {test_db}\n",
        encoding="utf-8",
    )
    assert db.get_log_db_path() == str(test_db)
    assert (tmp_path / "logs").is_dir()


def test_max_query_chars(monkeypatch, tmp_path):
    monkeypatch.setattr(db, "_PROJECT_ROOT", str(tmp_path))
    assert db.get_max_query_chars() == db.DEFAULT_MAX_QUERY_CHARS
    monkeypatch.setenv("SQLSOURCE_MAX_QUERY_CHARS", "12")
    assert db.get_max_query_chars() == 12
    monkeypatch.setenv("SQLSOURCE_MAX_QUERY_CHARS", "lots")
    assert db.get_max_query_chars() == db.DEFAULT_MAX_QUERY_CHARS


def test_open_readonly_refuses_writes(sample_db):
    with db.open_readonly(sample_db) as conn:
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("CREATE TABLE x(a)")


def test_open_readonly_handles_odd_file_names(tmp_path):
    path = tmp_path / "odd #name?.db"
    conn = sqlite3.connect(str(path))
    conn.execute("CREATE TABLE t(a)")
    conn.commit()
    conn.close()
    with db.open_readonly(str(path)) as ro:
        assert ro.execute("SELECT count(*) FROM t").fetchone() == (0,)
