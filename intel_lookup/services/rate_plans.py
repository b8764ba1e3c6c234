"""
Rate Plan Service - plans and their per-service entitlements.

A plan's service settings are always replaced wholesale: every plan_apis row
for the plan is deleted and the submitted set inserted in the same
transaction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.errors import integrity_error_for
from intel_lookup.db.models import PlanService, RatePlan, utc_now
from intel_lookup.exceptions import DuplicateResourceError, ResourceNotFoundError
from intel_lookup.models.api import PlanStatus, UserType
from intel_lookup.observability.logging import get_logger

logger = get_logger(__name__)

PLAN_UPDATABLE_FIELDS = frozenset(
    {
        "plan_name",
        "user_type",
        "monthly_fee",
        "default_credits",
        "renewal_required",
        "topup_allowed",
        "status",
    }
)


@dataclass(frozen=True)
class PlanServiceSetting:
    """Entitlement of one service within a plan."""

    service_id: UUID
    enabled: bool
    credit_cost: int
    buy_price: Decimal = Decimal("0")
    sell_price: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if self.credit_cost < 0:
            raise ValueError(f"Credit cost cannot be negative: {self.credit_cost}")


@dataclass(frozen=True)
class RatePlanCreate:
    plan_name: str
    user_type: UserType
    monthly_fee: Decimal
    default_credits: int
    renewal_required: bool = True
    topup_allowed: bool = True
    status: PlanStatus = PlanStatus.ACTIVE
    services: list[PlanServiceSetting] = field(default_factory=list)


class RatePlanService:
    """CRUD over rate plans and plan_apis."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_plans(self) -> list[RatePlan]:
        """Plans with their service settings eagerly loaded."""
        result = await self.session.execute(select(RatePlan).order_by(RatePlan.created_at.desc()))
        return list(result.scalars().all())

    async def get_plan(self, plan_id: UUID) -> RatePlan:
        plan = await self.session.get(RatePlan, plan_id)
        if plan is None:
            raise ResourceNotFoundError("RatePlan", plan_id)
        return plan

    async def create_plan(self, data: RatePlanCreate) -> RatePlan:
        plan = RatePlan(
            plan_name=data.plan_name,
            user_type=data.user_type.value,
            monthly_fee=data.monthly_fee,
            default_credits=data.default_credits,
            renewal_required=data.renewal_required,
            topup_allowed=data.topup_allowed,
            status=data.status.value,
        )
        self.session.add(plan)
        await self.session.flush()

        self._add_settings(plan.id, data.services)
        await self._flush_settings()
        await self.session.commit()
        await self.session.refresh(plan)

        logger.info(
            "rate_plan_created", plan_id=str(plan.id), service_count=len(data.services)
        )
        return plan

    async def update_plan(
        self,
        plan_id: UUID,
        changes: dict[str, Any],
        services: list[PlanServiceSetting] | None = None,
    ) -> RatePlan:
        """
        Update plan columns and, when services is given, replace its settings.

        Raises:
            ResourceNotFoundError: Plan doesn't exist
            DuplicateResourceError: Same service listed twice
            DataIntegrityError: A setting names an unknown service
            ValueError: Unknown field, or null for a column
        """
        unknown = set(changes) - PLAN_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        nulls = sorted(k for k, v in changes.items() if v is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")

        plan = await self.get_plan(plan_id)
        for key, value in changes.items():
            if isinstance(value, (UserType, PlanStatus)):
                value = value.value
            setattr(plan, key, value)
        plan.updated_at = utc_now()

        if services is not None:
            await self.session.execute(delete(PlanService).where(PlanService.plan_id == plan_id))
            self._add_settings(plan_id, services)

        await self._flush_settings()
        await self.session.commit()
        # Drop the cached collection so the replaced settings are reloaded
        self.session.expire(plan)
        await self.session.refresh(plan)

        logger.info(
            "rate_plan_updated",
            plan_id=str(plan_id),
            fields=sorted(changes),
            services_replaced=services is not None,
        )
        return plan

    async def replace_plan_services(
        self, plan_id: UUID, services: list[PlanServiceSetting]
    ) -> RatePlan:
        """Replace every service setting of a plan."""
        return await self.update_plan(plan_id, {}, services)

    async def delete_plan(self, plan_id: UUID) -> None:
        """Officers on the plan keep their balance and lose the plan reference."""
        plan = await self.get_plan(plan_id)
        await self.session.delete(plan)
        await self.session.commit()
        logger.info("rate_plan_deleted", plan_id=str(plan_id))

    def _add_settings(self, plan_id: UUID, services: list[PlanServiceSetting]) -> None:
        seen: set[UUID] = set()
        for setting in services:
            if setting.service_id in seen:
                raise DuplicateResourceError(
                    "plan service", f"service {setting.service_id} listed twice"
                )
            seen.add(setting.service_id)
            self.session.add(
                PlanService(
                    plan_id=plan_id,
                    service_id=setting.service_id,
                    enabled=setting.enabled,
                    credit_cost=setting.credit_cost,
                    buy_price=setting.buy_price,
                    sell_price=setting.sell_price,
                )
            )

    async def _flush_settings(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise integrity_error_for(exc, "plan service", "service listed twice") from exc
