"""
Admin API routes for managing officers, plans, services and credentials.

Protected by JWT authentication.
Read routes accept admin and moderator roles; write routes require admin.
"""

from datetime import UTC, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, IPvAnyAddress, field_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from intel_lookup.api.admin_dependencies import get_current_admin, require_admin_role
from intel_lookup.db.models import (
    AdminUser,
    CreditTransaction,
    Officer,
    ProviderCredential,
    QueryLogEntry,
)
from intel_lookup.db.session import get_read_db, get_write_db
from intel_lookup.exceptions import (
    DataIntegrityError,
    DuplicateResourceError,
    OfficerNotFoundError,
    ResourceNotFoundError,
)
from intel_lookup.models.api import (
    CredentialStatus,
    OfficerStatus,
    PlanStatus,
    QueryStatus,
    RegistrationStatus,
    ServiceType,
    TransactionAction,
    UserType,
)
from intel_lookup.observability.metrics import metrics
from intel_lookup.services.catalog import ServiceCatalog, ServiceCreate
from intel_lookup.services.credentials import CredentialView, ProviderCredentialService
from intel_lookup.services.ledger import DEFAULT_PAYMENT_MODE, CreditLedger
from intel_lookup.services.officers import OfficerCreate, OfficerService
from intel_lookup.services.rate_plans import PlanServiceSetting, RatePlanCreate, RatePlanService
from intel_lookup.services.registrations import RegistrationService

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# Request/Response Models
# ============================================================================


def _reject_null(value: Any) -> Any:
    """Partial updates may omit a NOT NULL column but not send it as null."""
    if value is None:
        raise ValueError("must not be null")
    return value


class OfficerResponse(BaseModel):
    """Officer as shown to admins. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    mobile: str
    telegram_id: str | None
    status: OfficerStatus
    department: str | None
    rank: str | None
    badge_number: str | None
    station: str | None
    plan_id: UUID | None
    credits_remaining: int
    total_credits: int
    total_queries: int
    last_active: datetime
    registered_on: datetime
    created_at: datetime


class OfficerListResponse(BaseModel):
    """Paginated officer list response."""

    officers: list[OfficerResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class OfficerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    mobile: str = Field(..., min_length=5, max_length=32)
    password: str = Field(..., min_length=8, max_length=128)
    telegram_id: str | None = Field(None, max_length=255)
    status: OfficerStatus = OfficerStatus.ACTIVE
    department: str | None = Field(None, max_length=255)
    rank: str | None = Field(None, max_length=100)
    badge_number: str | None = Field(None, max_length=100)
    station: str | None = Field(None, max_length=255)
    plan_id: UUID | None = None
    credits_remaining: int | None = Field(None, ge=0)
    total_credits: int | None = Field(None, ge=0)


class OfficerUpdateRequest(BaseModel):
    """Partial update. A blank password leaves the hash unchanged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    mobile: str | None = Field(None, min_length=5, max_length=32)
    password: str | None = Field(None, max_length=128)
    telegram_id: str | None = Field(None, max_length=255)
    status: OfficerStatus | None = None
    department: str | None = Field(None, max_length=255)
    rank: str | None = Field(None, max_length=100)
    badge_number: str | None = Field(None, max_length=100)
    station: str | None = Field(None, max_length=255)
    plan_id: UUID | None = None

    @field_validator("name", "email", "mobile", "status")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


class CreditAdjustmentRequest(BaseModel):
    action: TransactionAction
    credits: int = Field(..., ge=0, description="Magnitude; the action decides the sign")
    payment_mode: str = Field(DEFAULT_PAYMENT_MODE, max_length=100)
    remarks: str | None = Field(None, max_length=1000)


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    officer_id: UUID
    officer_name: str
    action: TransactionAction
    credits: int
    balance_before: int
    balance_after: int
    payment_mode: str
    remarks: str | None
    processed_by: UUID | None
    created_at: datetime


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: ServiceType
    service_provider: str
    global_buy_price: Decimal
    global_sell_price: Decimal
    default_credit_charge: int
    description: str | None
    created_at: datetime


class ServiceCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ServiceType
    service_provider: str = Field("Direct", min_length=1, max_length=255)
    global_buy_price: Decimal = Field(Decimal("0"), ge=0)
    global_sell_price: Decimal = Field(Decimal("0"), ge=0)
    default_credit_charge: int = Field(0, ge=0)
    description: str | None = None


class ServiceUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    type: ServiceType | None = None
    service_provider: str | None = Field(None, min_length=1, max_length=255)
    global_buy_price: Decimal | None = Field(None, ge=0)
    global_sell_price: Decimal | None = Field(None, ge=0)
    default_credit_charge: int | None = Field(None, ge=0)
    description: str | None = None

    @field_validator(
        "name",
        "type",
        "service_provider",
        "global_buy_price",
        "global_sell_price",
        "default_credit_charge",
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


class PlanServiceSettingModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_id: UUID
    enabled: bool = False
    credit_cost: int = Field(0, ge=0)
    buy_price: Decimal = Field(Decimal("0"), ge=0)
    sell_price: Decimal = Field(Decimal("0"), ge=0)


class RatePlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plan_name: str
    user_type: UserType
    monthly_fee: Decimal
    default_credits: int
    renewal_required: bool
    topup_allowed: bool
    status: PlanStatus
    services: list[PlanServiceSettingModel]
    created_at: datetime


class RatePlanCreateRequest(BaseModel):
    plan_name: str = Field(..., min_length=1, max_length=255)
    user_type: UserType
    monthly_fee: Decimal = Field(..., ge=0)
    default_credits: int = Field(..., ge=0)
    renewal_required: bool = True
    topup_allowed: bool = True
    status: PlanStatus = PlanStatus.ACTIVE
    services: list[PlanServiceSettingModel] = Field(default_factory=list)


class RatePlanUpdateRequest(BaseModel):
    """Partial update. When `services` is present it replaces every setting."""

    plan_name: str | None = Field(None, min_length=1, max_length=255)
    user_type: UserType | None = None
    monthly_fee: Decimal | None = Field(None, ge=0)
    default_credits: int | None = Field(None, ge=0)
    renewal_required: bool | None = None
    topup_allowed: bool | None = None
    status: PlanStatus | None = None
    services: list[PlanServiceSettingModel] | None = None

    @field_validator(
        "plan_name",
        "user_type",
        "monthly_fee",
        "default_credits",
        "renewal_required",
        "topup_allowed",
        "status",
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


class CredentialResponse(BaseModel):
    """Provider credential with the key masked."""

    id: UUID
    service_id: UUID
    service_name: str
    api_key: str = Field(..., description="Masked: first 8 characters then asterisks")
    status: CredentialStatus
    usage_count: int
    last_used: datetime | None
    created_at: datetime


class CredentialCreateRequest(BaseModel):
    service_id: UUID
    api_key: str = Field(..., min_length=1)
    status: CredentialStatus = CredentialStatus.ACTIVE


class CredentialUpdateRequest(BaseModel):
    api_key: str | None = Field(None, min_length=1)
    status: CredentialStatus | None = None


class QueryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    officer_id: UUID
    officer_name: str
    type: str
    category: str
    input_data: str
    source: str | None
    result_summary: str | None
    full_result: Any | None
    credits_used: int
    status: QueryStatus
    ip_address: IPvAnyAddress | None
    user_agent: str | None
    created_at: datetime


class QueryListResponse(BaseModel):
    queries: list[QueryResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    mobile: str
    station: str
    department: str | None
    rank: str | None
    badge_number: str | None
    additional_info: str | None
    status: RegistrationStatus
    reviewed_at: datetime | None
    reviewed_by: str | None
    rejection_reason: str | None
    created_at: datetime


class RegistrationReviewRequest(BaseModel):
    decision: RegistrationStatus
    rejection_reason: str | None = Field(None, max_length=1000)


class RegistrationReviewResponse(BaseModel):
    registration: RegistrationResponse
    officer: OfficerResponse | None


class DashboardStatsResponse(BaseModel):
    total_officers: int
    active_officers: int
    total_queries_today: int
    successful_queries: int
    failed_queries: int
    success_rate: float
    total_credits_used: int
    active_credentials: int


def _total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size


def _credential_response(view: CredentialView) -> CredentialResponse:
    return CredentialResponse(
        id=view.credential_id,
        service_id=view.service_id,
        service_name=view.service_name,
        api_key=view.masked_key,
        status=view.status,
        usage_count=view.usage_count,
        last_used=view.last_used,
        created_at=view.created_at,
    )


def _settings_from(models: list[PlanServiceSettingModel]) -> list[PlanServiceSetting]:
    return [
        PlanServiceSetting(
            service_id=m.service_id,
            enabled=m.enabled,
            credit_cost=m.credit_cost,
            buy_price=m.buy_price,
            sell_price=m.sell_price,
        )
        for m in models
    ]


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ============================================================================
# Officers
# ============================================================================


@router.get("/officers", response_model=OfficerListResponse)
async def list_officers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=500, description="Items per page"),
    status_filter: OfficerStatus | None = Query(None, description="Filter by status"),
    search: str | None = Query(None, description="Search name, email, mobile or badge"),
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> OfficerListResponse:
    """
    List officers with pagination.

    Accessible by: admin, moderator
    """
    officers, total = await OfficerService(db).list_officers(
        page=page, page_size=page_size, status=status_filter, search=search
    )

    logger.info("admin_list_officers", admin_email=admin.email, page=page, total=total)

    return OfficerListResponse(
        officers=[OfficerResponse.model_validate(o) for o in officers],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=_total_pages(total, page_size),
    )


@router.get("/officers/{officer_id}", response_model=OfficerResponse)
async def get_officer(
    officer_id: UUID,
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> OfficerResponse:
    """Accessible by: admin, moderator"""
    try:
        officer = await OfficerService(db).get_officer(officer_id)
    except OfficerNotFoundError as exc:
        raise _not_found(exc) from exc
    return OfficerResponse.model_validate(officer)


@router.post("/officers", response_model=OfficerResponse, status_code=status.HTTP_201_CREATED)
async def create_officer(
    request: OfficerCreateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> OfficerResponse:
    """
    Create an officer. Credits default to the configured allotment.

    Accessible by: admin only
    """
    try:
        officer = await OfficerService(db).create_officer(
            OfficerCreate(**request.model_dump())
        )
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_officer_created", admin_email=admin.email, officer_id=str(officer.id))
    return OfficerResponse.model_validate(officer)


@router.patch("/officers/{officer_id}", response_model=OfficerResponse)
async def update_officer(
    officer_id: UUID,
    request: OfficerUpdateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> OfficerResponse:
    """Accessible by: admin only"""
    changes = request.model_dump(exclude_unset=True)
    password = changes.pop("password", None)

    try:
        officer = await OfficerService(db).update_officer(officer_id, changes, password=password)
    except OfficerNotFoundError as exc:
        raise _not_found(exc) from exc
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_officer_updated", admin_email=admin.email, officer_id=str(officer_id))
    return OfficerResponse.model_validate(officer)


@router.delete("/officers/{officer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_officer(
    officer_id: UUID,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> None:
    """Accessible by: admin only"""
    try:
        await OfficerService(db).delete_officer(officer_id)
    except OfficerNotFoundError as exc:
        raise _not_found(exc) from exc

    logger.info("admin_officer_deleted", admin_email=admin.email, officer_id=str(officer_id))


# ============================================================================
# Credits
# ============================================================================


@router.post("/officers/{officer_id}/credits", response_model=TransactionResponse)
async def adjust_officer_credits(
    officer_id: UUID,
    request: CreditAdjustmentRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> TransactionResponse:
    """
    Renew, top up, refund or deduct credits.

    Deductions are floored at a zero balance.

    Accessible by: admin only
    """
    try:
        transaction = await CreditLedger(db).credit(
            officer_id,
            request.credits,
            request.action,
            remarks=request.remarks,
            payment_mode=request.payment_mode,
            processed_by=admin.id,
        )
    except OfficerNotFoundError as exc:
        raise _not_found(exc) from exc

    metrics.credit_adjustments_total.labels(action=request.action.value).inc()
    logger.info(
        "admin_credits_adjusted",
        admin_email=admin.email,
        officer_id=str(officer_id),
        action=request.action.value,
        credits=request.credits,
        balance_after=transaction.balance_after,
    )

    row = await db.get(CreditTransaction, transaction.transaction_id)
    return TransactionResponse.model_validate(row)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    officer_id: UUID | None = Query(None, description="Filter by officer"),
    action: TransactionAction | None = Query(None, description="Filter by action"),
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> TransactionListResponse:
    """Accessible by: admin, moderator"""
    stmt = select(CreditTransaction)
    if officer_id is not None:
        stmt = stmt.where(CreditTransaction.officer_id == officer_id)
    if action is not None:
        stmt = stmt.where(CreditTransaction.action == action.value)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    stmt = (
        stmt.order_by(CreditTransaction.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).scalars().all()

    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(r) for r in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=_total_pages(total, page_size),
    )


# ============================================================================
# Services
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> list[ServiceResponse]:
    """Accessible by: admin, moderator"""
    services = await ServiceCatalog(db).list_services()
    return [ServiceResponse.model_validate(s) for s in services]


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    request: ServiceCreateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> ServiceResponse:
    """Accessible by: admin only"""
    try:
        service = await ServiceCatalog(db).create_service(ServiceCreate(**request.model_dump()))
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_service_created", admin_email=admin.email, service_id=str(service.id))
    return ServiceResponse.model_validate(service)


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: UUID,
    request: ServiceUpdateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> ServiceResponse:
    """Accessible by: admin only"""
    try:
        service = await ServiceCatalog(db).update_service(
            service_id, request.model_dump(exclude_unset=True)
        )
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_service_updated", admin_email=admin.email, service_id=str(service_id))
    return ServiceResponse.model_validate(service)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> None:
    """Accessible by: admin only"""
    try:
        await ServiceCatalog(db).delete_service(service_id)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc

    logger.info("admin_service_deleted", admin_email=admin.email, service_id=str(service_id))


# ============================================================================
# Rate Plans
# ============================================================================


@router.get("/rate-plans", response_model=list[RatePlanResponse])
async def list_rate_plans(
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> list[RatePlanResponse]:
    """Plans with their per-service settings. Accessible by: admin, moderator"""
    plans = await RatePlanService(db).list_plans()
    return [RatePlanResponse.model_validate(p) for p in plans]


@router.post("/rate-plans", response_model=RatePlanResponse, status_code=status.HTTP_201_CREATED)
async def create_rate_plan(
    request: RatePlanCreateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> RatePlanResponse:
    """Accessible by: admin only"""
    data = request.model_dump(exclude={"services"})
    try:
        plan = await RatePlanService(db).create_plan(
            RatePlanCreate(**data, services=_settings_from(request.services))
        )
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_rate_plan_created", admin_email=admin.email, plan_id=str(plan.id))
    return RatePlanResponse.model_validate(plan)


@router.patch("/rate-plans/{plan_id}", response_model=RatePlanResponse)
async def update_rate_plan(
    plan_id: UUID,
    request: RatePlanUpdateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> RatePlanResponse:
    """
    Update a plan. A `services` list replaces all of the plan's settings.

    Accessible by: admin only
    """
    changes = request.model_dump(exclude_unset=True, exclude={"services"})
    services = _settings_from(request.services) if request.services is not None else None

    try:
        plan = await RatePlanService(db).update_plan(plan_id, changes, services)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc

    logger.info("admin_rate_plan_updated", admin_email=admin.email, plan_id=str(plan_id))
    return RatePlanResponse.model_validate(plan)


@router.put("/rate-plans/{plan_id}/services", response_model=RatePlanResponse)
async def replace_rate_plan_services(
    plan_id: UUID,
    request: list[PlanServiceSettingModel],
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> RatePlanResponse:
    """Accessible by: admin only"""
    try:
        plan = await RatePlanService(db).replace_plan_services(plan_id, _settings_from(request))
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc

    logger.info(
        "admin_rate_plan_services_replaced",
        admin_email=admin.email,
        plan_id=str(plan_id),
        service_count=len(request),
    )
    return RatePlanResponse.model_validate(plan)


@router.delete("/rate-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_plan(
    plan_id: UUID,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> None:
    """Accessible by: admin only"""
    try:
        await RatePlanService(db).delete_plan(plan_id)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc

    logger.info("admin_rate_plan_deleted", admin_email=admin.email, plan_id=str(plan_id))


# ============================================================================
# Provider Credentials
# ============================================================================


@router.get("/credentials", response_model=list[CredentialResponse])
async def list_credentials(
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> list[CredentialResponse]:
    """Masked keys only. Accessible by: admin, moderator"""
    views = await ProviderCredentialService(db).list_credentials()
    return [_credential_response(v) for v in views]


@router.post(
    "/credentials", response_model=CredentialResponse, status_code=status.HTTP_201_CREATED
)
async def create_credential(
    request: CredentialCreateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> CredentialResponse:
    """
    Store a provider key. One key per service.

    Accessible by: admin only
    """
    try:
        view = await ProviderCredentialService(db).create_credential(
            request.service_id, request.api_key, request.status
        )
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc

    logger.info(
        "admin_credential_created",
        admin_email=admin.email,
        credential_id=str(view.credential_id),
        service_id=str(view.service_id),
    )
    return _credential_response(view)


@router.patch("/credentials/{credential_id}", response_model=CredentialResponse)
async def update_credential(
    credential_id: UUID,
    request: CredentialUpdateRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> CredentialResponse:
    """Rotate a key or change its status. Accessible by: admin only"""
    try:
        view = await ProviderCredentialService(db).update_credential(
            credential_id, api_key=request.api_key, status=request.status
        )
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc

    logger.info(
        "admin_credential_updated", admin_email=admin.email, credential_id=str(credential_id)
    )
    return _credential_response(view)


@router.delete("/credentials/{credential_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_credential(
    credential_id: UUID,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> None:
    """Accessible by: admin only"""
    try:
        await ProviderCredentialService(db).delete_credential(credential_id)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc

    logger.info(
        "admin_credential_deleted", admin_email=admin.email, credential_id=str(credential_id)
    )


# ============================================================================
# Queries
# ============================================================================


@router.get("/queries", response_model=QueryListResponse)
async def list_queries(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    officer_id: UUID | None = Query(None, description="Filter by officer"),
    status_filter: QueryStatus | None = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> QueryListResponse:
    """Accessible by: admin, moderator"""
    stmt = select(QueryLogEntry)
    if officer_id is not None:
        stmt = stmt.where(QueryLogEntry.officer_id == officer_id)
    if status_filter is not None:
        stmt = stmt.where(QueryLogEntry.status == status_filter.value)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    stmt = (
        stmt.order_by(QueryLogEntry.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).scalars().all()

    return QueryListResponse(
        queries=[QueryResponse.model_validate(r) for r in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=_total_pages(total, page_size),
    )


# ============================================================================
# Registrations
# ============================================================================


@router.get("/registrations", response_model=list[RegistrationResponse])
async def list_registrations(
    status_filter: RegistrationStatus | None = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> list[RegistrationResponse]:
    """Accessible by: admin, moderator"""
    registrations = await RegistrationService(db).list_registrations(status_filter)
    return [RegistrationResponse.model_validate(r) for r in registrations]


@router.post(
    "/registrations/{registration_id}/review", response_model=RegistrationReviewResponse
)
async def review_registration(
    registration_id: UUID,
    request: RegistrationReviewRequest,
    db: AsyncSession = Depends(get_write_db),
    admin: AdminUser = Depends(require_admin_role),
) -> RegistrationReviewResponse:
    """
    Approve or reject a registration. Approval creates the officer account.

    Accessible by: admin only
    """
    try:
        registration, officer = await RegistrationService(db).review(
            registration_id,
            request.decision,
            reviewed_by=admin.email,
            rejection_reason=request.rejection_reason,
        )
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateResourceError as exc:
        raise _conflict(exc) from exc
    except DataIntegrityError as exc:
        raise _bad_request(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc

    logger.info(
        "admin_registration_reviewed",
        admin_email=admin.email,
        registration_id=str(registration_id),
        decision=request.decision.value,
    )
    return RegistrationReviewResponse(
        registration=RegistrationResponse.model_validate(registration),
        officer=OfficerResponse.model_validate(officer) if officer else None,
    )


# ============================================================================
# Dashboard
# ============================================================================


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_read_db),
    admin: AdminUser = Depends(get_current_admin),
) -> DashboardStatsResponse:
    """
    Headline numbers for the admin dashboard.

    Accessible by: admin, moderator
    """
    start_of_day = datetime.combine(datetime.now(UTC).date(), time.min, tzinfo=UTC)

    total_officers = (await db.execute(select(func.count(Officer.id)))).scalar_one()
    active_officers = (
        await db.execute(
            select(func.count(Officer.id)).where(Officer.status == OfficerStatus.ACTIVE.value)
        )
    ).scalar_one()

    queries_today = (
        await db.execute(
            select(func.count(QueryLogEntry.id)).where(QueryLogEntry.created_at >= start_of_day)
        )
    ).scalar_one()
    successful = (
        await db.execute(
            select(func.count(QueryLogEntry.id)).where(
                QueryLogEntry.status == QueryStatus.SUCCESS.value
            )
        )
    ).scalar_one()
    failed = (
        await db.execute(
            select(func.count(QueryLogEntry.id)).where(
                QueryLogEntry.status == QueryStatus.FAILED.value
            )
        )
    ).scalar_one()

    credits_used = (
        await db.execute(
            select(func.coalesce(func.sum(func.abs(CreditTransaction.credits)), 0)).where(
                CreditTransaction.action == TransactionAction.DEDUCTION.value
            )
        )
    ).scalar_one()

    active_credentials = (
        await db.execute(
            select(func.count(ProviderCredential.id)).where(
                ProviderCredential.status == CredentialStatus.ACTIVE.value
            )
        )
    ).scalar_one()

    finished = successful + failed
    success_rate = round(successful / finished * 100, 1) if finished else 0.0

    logger.info("admin_dashboard_stats", admin_email=admin.email)

    return DashboardStatsResponse(
        total_officers=total_officers,
        active_officers=active_officers,
        total_queries_today=queries_today,
        successful_queries=successful,
        failed_queries=failed,
        success_rate=success_rate,
        total_credits_used=credits_used,
        active_credentials=active_credentials,
    )
