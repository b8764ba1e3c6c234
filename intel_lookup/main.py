"""
Main Application - FastAPI application setup.
"""

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest

from intel_lookup.api.admin_routes import router as admin_router
from intel_lookup.api.routes import lookup_error_response, router
from intel_lookup.config import settings
from intel_lookup.db.session import close_engines, get_read_engine, get_write_engine
from intel_lookup.observability import (
    get_logger,
    log_context,
    metrics,
    setup_logging,
    setup_tracing,
)
from intel_lookup.observability.tracing import instrument_fastapi, instrument_sqlalchemy
from intel_lookup.services.providers.registry import build_adapter_registry

# Setup logging before anything else
setup_logging()
logger = get_logger(__name__)

LOOKUP_PATH = "/v1/lookups"
REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Builds the shared provider HTTP client and the adapter registry on
    startup, and closes them with the database engines on shutdown.
    """
    logger.info(
        "application_starting",
        service=settings.api_title,
        version=settings.api_version,
        tracing_enabled=settings.tracing_enabled,
        metrics_enabled=settings.metrics_enabled,
    )

    instrument_sqlalchemy(get_write_engine())
    if settings.database_read_url:
        instrument_sqlalchemy(get_read_engine())

    http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    app.state.adapters = build_adapter_registry(http_client, settings)
    logger.info("adapter_registry_built", services=[name.value for name in app.state.adapters])

    yield

    logger.info("application_shutting_down")
    await http_client.aclose()
    await close_engines()
    logger.info("database_engines_closed")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Log validation errors.

    The lookup endpoint answers 400 in its own response shape; everything
    else keeps FastAPI's 422.
    """
    sanitized_errors = []
    for error in exc.errors():
        sanitized = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            sanitized["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        sanitized_errors.append(sanitized)

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        errors=sanitized_errors,
    )

    if request.url.path == LOOKUP_PATH:
        metrics.record_denial("invalid_request")
        return lookup_error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": sanitized_errors},
    )


# Setup tracing
setup_tracing()
instrument_fastapi(app)


# CORS for browser clients calling the lookup endpoint
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind a request id to every log line of the request and record HTTP metrics."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
    endpoint = request.url.path
    method = request.method
    start_time = time.perf_counter()
    metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).inc()

    with log_context(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            metrics.record_http_request(endpoint, method, 500, duration)
            metrics.record_error(type(e).__name__, "http_request")
            logger.error(
                "request_failed",
                method=method,
                path=endpoint,
                duration_seconds=duration,
                exc_info=True,
            )
            raise
        finally:
            metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).dec()

        duration = time.perf_counter() - start_time
        metrics.record_http_request(endpoint, method, response.status_code, duration)
        logger.info(
            "request_completed",
            method=method,
            path=endpoint,
            status_code=response.status_code,
            duration_seconds=round(duration, 4),
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Register routes
app.include_router(router)  # Officer lookup + health
app.include_router(admin_router)  # Admin console API


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
    }


@app.get("/metrics")
async def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return PlainTextResponse("metrics disabled", status_code=status.HTTP_404_NOT_FOUND)
    return PlainTextResponse(generate_latest())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "intel_lookup.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
