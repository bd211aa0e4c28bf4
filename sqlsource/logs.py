import logging
import sqlite3
import time, uuid, datetime as dt
from typing import Optional, Tuple, List, Dict, Any
from .db import get_conn

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  action TEXT NOT NULL,
  request_id TEXT,
  source TEXT,
  query TEXT,
  result TEXT,
  err_msg TEXT,
  row_count INTEGER,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""


def ensure_log_schema():
    with get_conn() as conn:
        conn.executescript(DDL)
        conn.commit()


class OperationLogContext:
    """Times one operation and records its outcome in the operation log db."""

    def __init__(self, action: str):
        self.action = action
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.source: Optional[str] = None
        self.query: Optional[str] = None
        self.row_count: Optional[int] = None

    def set_query(self, source: str, query: str):
        self.source = source
        self.query = query

    def set_row_count(self, n: int): self.row_count = n

    def write(self, result: str = "OK", err: Optional[str] = None) -> bool:
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "action": self.action,
            "request_id": self.request_id,
            "source": self.source,
            "query": self.query,
            "result": result,
            "err_msg": err,
            "row_count": self.row_count,
            "latency_ms": elapsed_ms,
        }
        try:
            with get_conn() as conn:
                conn.execute(
                    """INSERT INTO operation_log
                    (ts,action,request_id,source,query,result,err_msg,row_count,latency_ms)
                    VALUES(:ts,:action,:request_id,:source,:query,:result,:err_msg,:row_count,:latency_ms)""",
                    rec
                )
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            # the log is auxiliary: never let it mask the query outcome
            logger.warning("operation log write failed for %s: %s", self.action, e)
            return False
        return True


def search_operation_logs(q: str|None, action: str|None, ts_from: str|None, ts_to: str|None, page:int, size:int) -> Tuple[int, List[Dict[str, Any]]]:
    where = []
    params = {}
    if q:
        where.append("(source LIKE :q OR query LIKE :q)")
        params["q"] = f"%{q}%"
    if action:
        where.append("action = :action")
        params["action"] = action
    if ts_from:
        where.append("ts >= :from")
        params["from"] = ts_from
    if ts_to:
        where.append("ts <= :to")
        params["to"] = ts_to
    wh = " WHERE " + " AND ".join(where) if where else ""
    page = max(page, 1)
    sql = f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset"
    count_sql = f"SELECT COUNT(1) AS cnt FROM operation_log{wh}"
    with get_conn() as conn:
        total = conn.execute(count_sql, params).fetchone()["cnt"]
        rows = conn.execute(sql, {**params, "limit": size, "offset": (page-1)*size}).fetchall()
        return total, [dict(r) for r in rows]
