"""
Entitlement Resolver - plan to service permission and cost lookup.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.models import PlanService
from intel_lookup.models.domain import Entitlement


class EntitlementResolver:
    """Reads plan_apis. Never cached, so plan edits apply to the next lookup."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def resolve(self, plan_id: UUID | None, service_id: UUID) -> Entitlement | None:
        """Return the enabled entitlement for (plan, service), or None."""
        if plan_id is None:
            return None

        stmt = select(PlanService).where(
            PlanService.plan_id == plan_id,
            PlanService.service_id == service_id,
            PlanService.enabled.is_(True),
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            return None

        return Entitlement(
            plan_id=row.plan_id,
            service_id=row.service_id,
            enabled=row.enabled,
            credit_cost=row.credit_cost,
        )
