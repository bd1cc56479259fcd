"""FastAPI application for the Notekeeper API.

Endpoints:
  POST   /api/notes                    — Create a note
  GET    /api/notes?q=&tags=&limit=    — List notes (full-text + tag filters)
  GET    /api/notes/{id}               — Fetch one note
  PUT    /api/notes/{id}               — Replace a note
  DELETE /api/notes/{id}               — Delete a note
  POST   /api/bookmarks                — Create a bookmark (title fetched if blank)
  GET    /api/bookmarks?q=&tags=&limit= — List bookmarks
  GET    /api/bookmarks/fetch-title    — Fetch a page title (?url=)
  POST   /api/bookmarks/fetch-title    — Fetch a page title ({"url": ...})
  GET    /api/bookmarks/{id}           — Fetch one bookmark
  PUT    /api/bookmarks/{id}           — Replace a bookmark
  DELETE /api/bookmarks/{id}           — Delete a bookmark
  GET    /health                       — Liveness probe
  GET    /metrics                      — Prometheus metrics
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from api import bookmarks, notes
from api.auth import require_token
from api.config import settings
from api.database import Database
from api.deps import db, get_database, title_cache
from api.metrics import HTTP_DURATION, HTTP_REQUESTS
from api.schemas import ErrorOut, FieldError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Endpoints excluded from HTTP metrics to avoid noise from scrapers and docs
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request count and duration for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with timing and counting."""
        path = request.url.path
        if path in _METRICS_EXCLUDE:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        # Label by route template so record ids don't explode cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        HTTP_REQUESTS.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_DURATION.labels(endpoint=endpoint).observe(elapsed)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: connect datastore and title cache."""
    logger.info("Connecting to PostgreSQL...")
    await db.init()
    logger.info("Connecting to Redis title cache...")
    await title_cache.connect()
    yield
    await title_cache.close()
    await db.close()
    logger.info("Notekeeper API shut down.")


app = FastAPI(title="Notekeeper API", version="1.0.0", lifespan=lifespan)

app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)


# --- Error envelope ---


def _field_name(loc: tuple[Any, ...]) -> str:
    """("body", "title") -> "title"; ("path", "note_id") -> "note_id"."""
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 with one entry per offending field."""
    details = [
        FieldError(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", ""))
        for err in exc.errors()
    ]
    logger.info(
        "Validation failed method=%s path=%s fields=%s",
        request.method, request.url.path, [d.field for d in details],
    )
    body = ErrorOut(error="Validation failed", details=details)
    return JSONResponse(status_code=400, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorOut(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=exc.headers,
    )


# --- Routes ---

api_router = APIRouter(prefix="/api", dependencies=[Depends(require_token)])
api_router.include_router(notes.router)
api_router.include_router(bookmarks.router)
app.include_router(api_router)


@app.api_route("/health", methods=["GET", "HEAD"])
async def health(database: Database = Depends(get_database)) -> dict[str, Any]:
    """Liveness probe: status, timestamp and datastore reachability."""
    database_ok = await database.ping()
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "database": "connected" if database_ok else "unavailable",
        "title_cache": title_cache.stats(),
    }


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
