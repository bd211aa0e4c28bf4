from __future__ import annotations

import base64
import math
from typing import Any, List, Sequence, Union

from ..errors import CellReadError

# NULL / INTEGER / REAL / TEXT / BLOB
CellValue = Union[None, int, float, str, bytes]
Row = List[CellValue]

BYTES_KEY = "$bytes"


def to_cell(raw: Any, col: int) -> CellValue:
    """Map one value handed back by sqlite3 onto the five storage classes."""
    if raw is None:
        return None
    # bool is an int subclass but never produced by the engine
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, float):
        return raw
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    raise CellReadError(f"column {col}: unsupported value type {type(raw).__name__}")


def to_row(raw: Sequence[Any], col_count: int) -> Row:
    if len(raw) != col_count:
        raise CellReadError(f"expected {col_count} columns, got {len(raw)}")
    return [to_cell(v, i) for i, v in enumerate(raw)]


def to_json_value(v: CellValue) -> Any:
    """JSON has no byte strings: blobs travel as {"$bytes": "<base64>"}."""
    if isinstance(v, bytes):
        return {BYTES_KEY: base64.b64encode(v).decode("ascii")}
    if isinstance(v, float) and not math.isfinite(v):
        # strict JSON rejects inf; SQLite never stores NaN
        return str(v)
    return v


def rows_to_json(rows: Sequence[Row]) -> list[list[Any]]:
    return [[to_json_value(v) for v in r] for r in rows]
