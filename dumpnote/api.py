"""
FastAPI app entry point aggregating per-domain routers under dumpnote/routes.
Keep as `uvicorn dumpnote.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import get_conn
from .logs import ensure_log_schema
from .repository.schema import ensure_schema
from .services.config_svc import ensure_default_config

logger = logging.getLogger(__name__)


def ensure_all_schemas():
    with get_conn() as conn:
        ensure_schema(conn)
    ensure_log_schema()
    ensure_default_config()


app = FastAPI(title="dumpnote-api", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    logger.info("initializing database schema")
    ensure_all_schemas()


# Include routers (split by resource)
from .routes import base as base_routes
from .routes import auth as auth_routes
from .routes import notes as notes_routes
from .routes import sets as sets_routes
from .routes import settings as settings_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(auth_routes.router)
app.include_router(notes_routes.router)
app.include_router(sets_routes.router)
app.include_router(settings_routes.router)
app.include_router(logs_routes.router)
