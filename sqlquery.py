#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Read-only SQLite query tool

Commands:
  query               Run one query against a SQLite file and print the rows
  serve               Start the HTTP API (uvicorn sqlsource.api:app)

Notes:
- The database file is always opened read-only; a missing file is an error, never created.
- Rows are printed without a header row. Blob cells are shown as {"$bytes": "<base64>"} in JSON.
- Relative paths resolve against --root, then SQLSOURCE_ROOT / config.yaml root_dir, then the cwd.
"""

import argparse
import json
import logging
import sys

import pandas as pd

from sqlsource.domain.cells import rows_to_json
from sqlsource.errors import SqlError
from sqlsource.logs import OperationLogContext
from sqlsource.services.query_svc import load_sql


def cmd_query(args) -> int:
    log = OperationLogContext("CLI_QUERY")
    try:
        rows = load_sql(args.source, args.sql, root=args.root, log=log)
    except SqlError as e:
        log.write("ERROR", str(e))
        print(str(e), file=sys.stderr)
        return 1
    log.write("OK")

    data = rows_to_json(rows)
    if args.format == "table":
        df = pd.DataFrame(data)
        pd.set_option("display.max_rows", 200)
        pd.set_option("display.width", 160)
        print(df.to_string(header=False, index=False) if not df.empty else "(empty)")
    else:
        print(json.dumps(data, ensure_ascii=False))

    if args.csv:
        pd.DataFrame(data).to_csv(args.csv, header=False, index=False, encoding="utf-8")
        print(f"CSV exported to {args.csv}", file=sys.stderr)
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("sqlsource.api:app", host=args.host, port=args.port)
    return 0


# ---------------- Entry ----------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read-only SQLite query tool")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_query = sub.add_parser("query", help="run a query and print the rows")
    p_query.add_argument("source", help="path to a SQLite file")
    p_query.add_argument("sql", help="query text, passed to SQLite verbatim")
    p_query.add_argument("--root", required=False, help="directory relative paths resolve against")
    p_query.add_argument("--format", choices=["json", "table"], default="json")
    p_query.add_argument("--csv", required=False, help="also export rows to this CSV file")
    p_query.set_defaults(func=cmd_query)

    p_serve = sub.add_parser("serve", help="start the HTTP API")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.set_defaults(func=cmd_serve)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
