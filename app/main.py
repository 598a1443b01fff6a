"""FastAPI entry point for the judge orchestrator."""

from __future__ import annotations

import logging
import os
import re
import uuid
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.common.errors import register_exception_handlers
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.features.judge0.endpoints import public_router as judge0_public_router
from app.features.problems.endpoints import router as problems_router
from app.features.profiles.endpoints import router as profiles_router
from app.features.submissions.endpoints import router as submissions_router

configure_logging()

_settings = get_settings()
app = FastAPI(title=_settings.app_name)
_START_TIME = datetime.now(timezone.utc)


# ------------------------
# CORS Setup
# ------------------------
def _split_env_csv(name: str, default: str = ""):
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


_FRONTEND_ORIGINS = _split_env_csv(
    "ALLOW_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000",
)

_CORS_ORIGIN_REGEX = re.compile(r"https?://(localhost|127\.0\.0\.1)(:\d+)?", re.I)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_FRONTEND_ORIGINS,
    allow_origin_regex=_CORS_ORIGIN_REGEX.pattern,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger = logging.getLogger("request")
    logger.info("request.start", extra={"request_id": req_id, "path": request.url.path, "method": request.method})
    t0 = perf_counter()
    response = await call_next(request)
    dt = int((perf_counter() - t0) * 1000)
    response.headers["X-Request-Id"] = req_id
    logger.info(
        "request.end",
        extra={"request_id": req_id, "path": request.url.path, "status_code": response.status_code, "ms": dt},
    )
    return response


register_exception_handlers(app)


# ------------------------
# Routers
# ------------------------
app.include_router(judge0_public_router)
app.include_router(submissions_router)
app.include_router(problems_router)
app.include_router(profiles_router)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    judge0_ready = _settings.judge0_configured
    supabase_ready = bool(_settings.supabase_url and _settings.supabase_key)
    return {
        "status": "ok" if judge0_ready and supabase_ready else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "judge0": "configured" if judge0_ready else "missing-config",
            "supabase": "configured" if supabase_ready else "missing-config",
        },
    }
