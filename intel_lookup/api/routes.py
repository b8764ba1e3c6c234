"""
API Routes - officer lookup endpoint and health check.

The lookup response always has the LookupResponse shape, including on errors,
so clients can read `error` regardless of status code.
"""

import ipaddress
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from intel_lookup.db.session import get_read_db, get_write_db
from intel_lookup.exceptions import (
    EntitlementDeniedError,
    InsufficientCreditsError,
    InvalidRequestError,
    OfficerUnauthorizedError,
    ProviderUnavailableError,
    UnsupportedProviderError,
)
from intel_lookup.models.api import HealthResponse, LookupRequest, LookupResponse
from intel_lookup.models.domain import LookupIntent
from intel_lookup.observability.metrics import metrics
from intel_lookup.services.broker import QueryBroker
from intel_lookup.services.providers.registry import AdapterRegistry

logger = get_logger(__name__)

router = APIRouter()

INTERNAL_ERROR_MESSAGE = "Internal server error"


def lookup_error_response(status_code: int, message: str) -> JSONResponse:
    """LookupResponse-shaped error body."""
    body = LookupResponse(success=False, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop, else the peer address. None if not an IP."""
    forwarded = request.headers.get("X-Forwarded-For")
    candidate = forwarded.split(",")[0].strip() if forwarded else None
    if not candidate and request.client:
        candidate = request.client.host
    if not candidate:
        return None
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return None


def get_adapter_registry(request: Request) -> AdapterRegistry:
    """Adapter registry built in the application lifespan."""
    adapters: AdapterRegistry = request.app.state.adapters
    return adapters


def get_query_broker(
    db: AsyncSession = Depends(get_write_db),
    adapters: AdapterRegistry = Depends(get_adapter_registry),
) -> QueryBroker:
    """Broker wired onto the request's write session."""
    return QueryBroker.for_session(db, adapters)


@router.post("/v1/lookups", response_model=LookupResponse, response_model_exclude_none=True)
async def create_lookup(
    body: LookupRequest,
    request: Request,
    broker: QueryBroker = Depends(get_query_broker),
) -> JSONResponse:
    """
    Run a PRO lookup for an officer.

    Status codes:
        200: Lookup succeeded and was charged
        400: Missing fields, or the provider call failed (not charged)
        402: Balance below the service's credit cost
        403: Officer unknown/inactive, or service not enabled for the plan
        500: Provider misconfigured or unexpected fault
    """
    try:
        intent = LookupIntent(
            service_id=body.api_id or "",
            input_data=body.input_data or "",
            category=body.category or "",
            officer_id=body.officer_id or "",
            ip_address=client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        outcome = await broker.handle(intent)

    except InvalidRequestError as exc:
        metrics.record_denial("invalid_request")
        logger.info("lookup_rejected", missing_fields=exc.missing_fields)
        return lookup_error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    except (OfficerUnauthorizedError, EntitlementDeniedError) as exc:
        return lookup_error_response(status.HTTP_403_FORBIDDEN, str(exc))

    except InsufficientCreditsError as exc:
        return lookup_error_response(status.HTTP_402_PAYMENT_REQUIRED, str(exc))

    except (ProviderUnavailableError, UnsupportedProviderError) as exc:
        logger.error("lookup_provider_misconfigured", error=str(exc))
        return lookup_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    except Exception:
        logger.error("lookup_failed_unexpectedly", exc_info=True)
        metrics.record_error("unexpected", "lookup")
        return lookup_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    response = LookupResponse(
        success=outcome.success,
        data=outcome.data,
        result_summary=outcome.result_summary,
        credits_used=outcome.credits_used,
        error=outcome.error,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if outcome.success else status.HTTP_400_BAD_REQUEST,
        content=response.model_dump(exclude_none=True),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_read_db)) -> HealthResponse:
    """
    Health check for load balancer.

    Verifies database connectivity.
    """
    try:
        await db.execute(text("SELECT 1"))

        return HealthResponse(
            status="healthy",
            database="connected",
            timestamp=datetime.now(UTC).isoformat(),
        )

    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(exc),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        ) from exc
