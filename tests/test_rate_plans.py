"""
Tests for RatePlanService.

Plan service settings are replaced wholesale: the existing plan_apis rows
are deleted before the new set is added, inside one commit.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, call
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.dml import Delete

from intel_lookup.db.models import PlanService, RatePlan
from intel_lookup.exceptions import (
    DataIntegrityError,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from intel_lookup.models.api import PlanStatus, UserType
from intel_lookup.services.rate_plans import (
    PlanServiceSetting,
    RatePlanCreate,
    RatePlanService,
)


def existing_plan() -> RatePlan:
    return RatePlan(
        id=uuid4(),
        plan_name="District Basic",
        user_type="Police",
        monthly_fee=Decimal("0"),
        default_credits=50,
        renewal_required=True,
        topup_allowed=True,
        status="Active",
    )


def added_settings(session: AsyncMock) -> list[PlanService]:
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], PlanService)]


class TestPlanServiceSetting:
    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            PlanServiceSetting(service_id=uuid4(), enabled=True, credit_cost=-1)

    def test_zero_cost_allowed(self):
        setting = PlanServiceSetting(service_id=uuid4(), enabled=False, credit_cost=0)
        assert setting.buy_price == Decimal("0")


class TestCreatePlan:
    async def test_settings_reference_new_plan(self, db_session):
        plan_id = uuid4()

        async def assign_id(*args, **kwargs):
            for c in db_session.add.call_args_list:
                obj = c.args[0]
                if isinstance(obj, RatePlan) and obj.id is None:
                    obj.id = plan_id

        db_session.flush = AsyncMock(side_effect=assign_id)
        first, second = uuid4(), uuid4()

        plan = await RatePlanService(db_session).create_plan(
            RatePlanCreate(
                plan_name="Cyber Cell Pro",
                user_type=UserType.POLICE,
                monthly_fee=Decimal("1500.00"),
                default_credits=200,
                services=[
                    PlanServiceSetting(service_id=first, enabled=True, credit_cost=2),
                    PlanServiceSetting(service_id=second, enabled=False, credit_cost=5),
                ],
            )
        )

        assert plan.id == plan_id
        assert plan.status == PlanStatus.ACTIVE.value
        settings = added_settings(db_session)
        assert [s.service_id for s in settings] == [first, second]
        assert all(s.plan_id == plan_id for s in settings)
        assert [s.credit_cost for s in settings] == [2, 5]
        db_session.commit.assert_awaited_once()

    async def test_unknown_service_is_invalid_not_duplicate(self, db_session):
        fk_violation = IntegrityError(
            "INSERT", {}, Exception('violates foreign key constraint "plan_apis_api_id_fkey"')
        )
        db_session.flush = AsyncMock(side_effect=[None, fk_violation])

        with pytest.raises(DataIntegrityError):
            await RatePlanService(db_session).create_plan(
                RatePlanCreate(
                    plan_name="Broken",
                    user_type=UserType.POLICE,
                    monthly_fee=Decimal("0"),
                    default_credits=10,
                    services=[PlanServiceSetting(service_id=uuid4(), enabled=True, credit_cost=1)],
                )
            )

        db_session.rollback.assert_awaited_once()
        db_session.commit.assert_not_called()


class TestUpdatePlan:
    async def test_replace_deletes_then_adds(self, db_session):
        plan = existing_plan()
        db_session.get = AsyncMock(return_value=plan)
        service_id = uuid4()

        await RatePlanService(db_session).replace_plan_services(
            plan.id, [PlanServiceSetting(service_id=service_id, enabled=True, credit_cost=3)]
        )

        stmt = db_session.execute.call_args[0][0]
        assert isinstance(stmt, Delete)
        assert stmt.table.name == "plan_apis"
        settings = added_settings(db_session)
        assert len(settings) == 1
        assert settings[0].plan_id == plan.id
        assert settings[0].credit_cost == 3
        db_session.commit.assert_awaited_once()
        db_session.expire.assert_called_once_with(plan)
        db_session.refresh.assert_awaited_once_with(plan)

    async def test_column_update_keeps_settings(self, db_session):
        plan = existing_plan()
        db_session.get = AsyncMock(return_value=plan)

        await RatePlanService(db_session).update_plan(
            plan.id, {"status": PlanStatus.INACTIVE, "default_credits": 75}
        )

        assert plan.status == "Inactive"
        assert plan.default_credits == 75
        assert plan.updated_at is not None
        db_session.execute.assert_not_called()
        db_session.add.assert_not_called()

    async def test_replace_with_empty_list_clears(self, db_session):
        plan = existing_plan()
        db_session.get = AsyncMock(return_value=plan)

        await RatePlanService(db_session).replace_plan_services(plan.id, [])

        db_session.execute.assert_awaited_once()
        assert added_settings(db_session) == []

    async def test_duplicate_service_rejected(self, db_session):
        plan = existing_plan()
        db_session.get = AsyncMock(return_value=plan)
        service_id = uuid4()
        setting = PlanServiceSetting(service_id=service_id, enabled=True, credit_cost=1)

        with pytest.raises(DuplicateResourceError):
            await RatePlanService(db_session).replace_plan_services(plan.id, [setting, setting])

        db_session.commit.assert_not_called()

    async def test_unknown_field_rejected(self, db_session):
        with pytest.raises(ValueError, match="id"):
            await RatePlanService(db_session).update_plan(uuid4(), {"id": uuid4()})

    async def test_missing_plan(self, db_session):
        with pytest.raises(ResourceNotFoundError):
            await RatePlanService(db_session).update_plan(uuid4(), {"plan_name": "x"})

    async def test_null_column_rejected(self, db_session):
        with pytest.raises(ValueError, match="monthly_fee"):
            await RatePlanService(db_session).update_plan(uuid4(), {"monthly_fee": None})

        db_session.get.assert_not_called()


class TestDeletePlan:
    async def test_delete(self, db_session):
        plan = existing_plan()
        db_session.get = AsyncMock(return_value=plan)

        await RatePlanService(db_session).delete_plan(plan.id)

        assert db_session.delete.await_args == call(plan)
        db_session.commit.assert_awaited_once()

    async def test_list_plans(self, db_session):
        plans = [existing_plan(), existing_plan()]
        result = MagicMock()
        result.scalars = MagicMock(return_value=MagicMock(all=MagicMock(return_value=plans)))
        db_session.execute = AsyncMock(return_value=result)

        assert await RatePlanService(db_session).list_plans() == plans
