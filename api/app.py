"""
FastAPI application factory for the chart buffet API.

Usage:
    python -m api.app                           # Dev server on port 8000
    APP_DATA_PATH=/data/entities.json python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Structured JSON logging when APP_LOG_FORMAT=json.
CORS middleware with configurable origins via APP_CORS_ORIGINS.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import dependencies
from api.routes import buffet
from buffet.catalog import known_fields
from buffet.store import EntityStore
from utils.config import AppConfig, BuffetConfig

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("chart_buffet_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log engine defaults; warn when no store is injected and the data file is missing."""
    data_path = dependencies.get_data_path()
    if not dependencies.has_entity_store() and not data_path.exists():
        _logger.warning(
            "Entity data not found at %s; buffet requests will return 503 "
            "until APP_DATA_PATH points at a JSON file.", data_path,
        )
    _logger.info("Buffet defaults: %s", BuffetConfig().to_dict())
    yield


def create_app(store: EntityStore | None = None, data_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Entity store to serve from (useful for testing).
        data_path: Override the JSON data path loaded on first request.

    Returns:
        Configured FastAPI application instance.
    """
    if data_path is not None:
        dependencies.set_data_path(data_path)
    if store is not None:
        dependencies.set_entity_store(store)

    app = FastAPI(
        title="Chart Buffet API",
        summary="Chart- and table-ready view cards summarizing one field across entities.",
        description=(
            "## Chart Buffet API\n\n"
            "Summarizes one nested field (obligations, resellers, SUM tiers, "
            "AI products, ...) across every agency, OEM or vendor and returns "
            "an ordered list of self-contained cards.\n\n"
            "### Key concepts\n"
            "- **Card**: chart descriptor plus an equivalent table and summary stats.\n"
            "- **percentage_base** is required: `total` divides by every category, "
            "`displayed` by the returned items (overflow bucket included).\n"
            "- **year_filter** narrows every total to one fiscal year or an inclusive "
            "range; `availableYears` always lists the unfiltered years."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "buffet",
                "description": "View-card generation and the field catalog.",
            },
            {
                "name": "meta",
                "description": "Health check and API metadata.",
            },
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its duration and a short request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if path == "/health":
            return response
        if _cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        if duration_ms > 500:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK when an entity store is loaded or loadable."""
        data_path = dependencies.get_data_path()
        if not dependencies.has_entity_store() and not data_path.exists():
            return JSONResponse(
                status_code=503,
                content={"status": "no_data", "data_path": str(data_path)},
            )
        return {"status": "ok", "known_fields": len(known_fields())}

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(buffet.router, prefix=prefix)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
