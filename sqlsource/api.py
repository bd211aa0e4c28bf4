"""
FastAPI app entry point aggregating the routers under sqlsource/routes.
Keep as `uvicorn sqlsource.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI

from . import __version__
from .logs import ensure_log_schema

logger = logging.getLogger(__name__)

app = FastAPI(title="sqlsource-api", version=__version__)


@app.on_event("startup")
def on_startup():
    try:
        ensure_log_schema()
    except Exception as e:
        # queries still work without the operation log
        logger.warning("ensure_log_schema failed: %s", e)


from .routes import base as base_routes
from .routes import query as query_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(query_routes.router)
app.include_router(logs_routes.router)
