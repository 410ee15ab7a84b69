"""
Name: Compliance Engine HTTP API

Responsibilities:
  - Build the FastAPI app: middleware, /v1 routes, RFC7807 handlers
  - Own the DB pool lifecycle for the API process
  - Serve liveness (/healthz), readiness (/readyz) and /metrics

Collaborators:
  - container: adapters (in-memory under APP_ENV=test)
  - interfaces.api.http.router: dispatch and console endpoints
  - crosscutting.middleware.RequestContextMiddleware

Notes:
  - No authentication: dispatch is called by the scheduler from inside
    the private network
  - Run with: uvicorn compliance_engine.api.main:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..container import _is_test_env, get_event_store
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    owns_pool = not _is_test_env()
    if owns_pool:
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )
    logger.info(
        "API lista",
        extra={
            "app_env": settings.app_env,
            "async_dispatch": bool(settings.redis_url.strip()),
            "dispatch_batch_size": settings.dispatch_batch_size,
        },
    )
    try:
        yield
    finally:
        if owns_pool:
            close_pool()


def _db_status() -> str:
    try:
        return "connected" if get_event_store().ping() else "disconnected"
    except Exception as exc:
        logger.warning("Event store no responde", extra={"error": str(exc)})
        return "disconnected"


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title="Compliance Engine API",
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "compliance", "description": "Dispatch, findings and tasks"}
        ],
    )

    # R: The last middleware added runs first; CORS answers preflight before
    # the request context is opened.
    application.add_middleware(RequestContextMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    application.include_router(router, prefix="/v1")
    register_exception_handlers(application)

    @application.get("/healthz", include_in_schema=False)
    def healthz(request: Request):
        """Liveness: the process answers even if the DB is down."""
        return {
            "ok": True,
            "db": _db_status(),
            "request_id": getattr(request.state, "request_id", None),
        }

    @application.get("/readyz", include_in_schema=False)
    def readyz(request: Request, response: Response):
        db = _db_status()
        if db != "connected":
            response.status_code = 503
        return {
            "ok": db == "connected",
            "db": db,
            "request_id": getattr(request.state, "request_id", None),
        }

    @application.get("/metrics", include_in_schema=False)
    def metrics():
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return application


app = create_app()
