from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, field_validator

from ..db import get_max_query_chars
from ..domain.cells import rows_to_json
from ..errors import SqlError
from ..logs import OperationLogContext
from ..services.query_svc import load_sql

router = APIRouter()


class SqlReq(BaseModel):
    source: str  # path to a SQLite file, relative to the configured root
    query: str
    root: Optional[str] = None

    @field_validator("query")
    @classmethod
    def _query_size(cls, v: str) -> str:
        limit = get_max_query_chars()
        if len(v) > limit:
            raise ValueError(f"query longer than {limit} characters")
        return v


@router.post("/api/sql")
def api_sql(body: SqlReq):
    log = OperationLogContext("SQL_QUERY")
    log.set_query(body.source, body.query)
    try:
        rows = load_sql(body.source, body.query, root=body.root, log=log)
    except SqlError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    log.write("OK")
    return {"rows": rows_to_json(rows), "row_count": len(rows)}
