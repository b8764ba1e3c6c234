"""
Tests for OfficerService.

Covers the broker's officer gate and the admin write paths that are not
exercised through the admin routes.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from argon2 import PasswordHasher
from sqlalchemy.exc import IntegrityError

from intel_lookup.exceptions import (
    DataIntegrityError,
    DuplicateResourceError,
    OfficerNotFoundError,
    OfficerUnauthorizedError,
    ResourceNotFoundError,
)
from intel_lookup.models.api import OfficerStatus
from intel_lookup.services.officers import (
    OfficerCreate,
    OfficerService,
    parse_uuid,
    telegram_handle_for,
)


def returning(officer) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=officer)
    return result


# ============================================================================
# Helpers
# ============================================================================


class TestParseUuid:
    def test_valid(self):
        value = uuid4()
        assert parse_uuid(str(value)) == value

    @pytest.mark.parametrize("value", ["", "not-a-uuid", "1234", "00000000-0000-0000-0000"])
    def test_malformed(self, value):
        assert parse_uuid(value) is None


class TestTelegramHandle:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Sub Inspector Meera Nair", "@subinspectormeeranair"),
            ("ASI  Rahul\tDas", "@asirahuldas"),
            ("kiran", "@kiran"),
        ],
    )
    def test_handle(self, name, expected):
        assert telegram_handle_for(name) == expected


# ============================================================================
# get_active_officer
# ============================================================================


class TestGetActiveOfficer:
    async def test_active_officer_snapshot(self, db_session, officer_factory):
        plan_id = uuid4()
        officer = officer_factory(plan_id=plan_id, credits_remaining=12, total_queries=4)
        db_session.execute = AsyncMock(return_value=returning(officer))

        snapshot = await OfficerService(db_session).get_active_officer(str(officer.id))

        assert snapshot.officer_id == officer.id
        assert snapshot.status is OfficerStatus.ACTIVE
        assert snapshot.plan_id == plan_id
        assert snapshot.credits_remaining == 12
        assert snapshot.total_queries == 4

    async def test_query_filters_on_active_status(self, db_session, officer_factory):
        officer = officer_factory()
        db_session.execute = AsyncMock(return_value=returning(officer))

        await OfficerService(db_session).get_active_officer(str(officer.id))

        stmt = db_session.execute.call_args[0][0]
        compiled = stmt.compile()
        assert "officers.status" in str(compiled)
        assert "Active" in compiled.params.values()

    async def test_missing_or_inactive_officer(self, db_session):
        officer_id = str(uuid4())

        with pytest.raises(OfficerUnauthorizedError) as exc_info:
            await OfficerService(db_session).get_active_officer(officer_id)

        assert exc_info.value.officer_id == officer_id

    async def test_malformed_id_skips_query(self, db_session):
        with pytest.raises(OfficerUnauthorizedError):
            await OfficerService(db_session).get_active_officer("officer-42")

        db_session.execute.assert_not_called()


# ============================================================================
# Admin writes
# ============================================================================


class TestCreateOfficer:
    async def test_explicit_credits(self, db_session):
        service = OfficerService(db_session)

        officer = await service.create_officer(
            OfficerCreate(
                name="Inspector Ravi Kumar",
                email="ravi@police.example.in",
                mobile="+919876543210",
                password="s3cret-pass",
                credits_remaining=10,
                total_credits=100,
            )
        )

        assert officer.credits_remaining == 10
        assert officer.total_credits == 100
        assert officer.total_queries == 0
        assert PasswordHasher().verify(officer.password_hash, "s3cret-pass")
        db_session.commit.assert_awaited_once()

    async def test_duplicate_rolls_back(self, db_session):
        db_session.flush = AsyncMock(
            side_effect=IntegrityError(
                "INSERT", {}, Exception("UNIQUE constraint failed: officers.email")
            )
        )

        with pytest.raises(DuplicateResourceError):
            await OfficerService(db_session).create_officer(
                OfficerCreate(
                    name="Dup", email="dup@example.in", mobile="1", password="x"
                )
            )

        db_session.rollback.assert_awaited_once()
        db_session.commit.assert_not_called()

    async def test_unknown_plan_is_not_found(self, db_session):
        plan_id = uuid4()

        with pytest.raises(ResourceNotFoundError, match=str(plan_id)):
            await OfficerService(db_session).create_officer(
                OfficerCreate(
                    name="No Plan",
                    email="np@example.in",
                    mobile="12345",
                    password="x",
                    plan_id=plan_id,
                )
            )

        db_session.add.assert_not_called()


class TestUpdateOfficer:
    async def test_unknown_field_rejected(self, db_session):
        with pytest.raises(ValueError, match="credits_remaining"):
            await OfficerService(db_session).update_officer(uuid4(), {"credits_remaining": 999})

        db_session.get.assert_not_called()

    async def test_missing_officer(self, db_session):
        with pytest.raises(OfficerNotFoundError):
            await OfficerService(db_session).update_officer(uuid4(), {"name": "x"})

    async def test_status_enum_stored_as_value(self, db_session, officer_factory):
        officer = officer_factory()
        db_session.get = AsyncMock(return_value=officer)

        await OfficerService(db_session).update_officer(
            officer.id, {"status": OfficerStatus.SUSPENDED}
        )

        assert officer.status == "Suspended"

    async def test_password_rehashed(self, db_session, officer_factory):
        officer = officer_factory()
        original_hash = officer.password_hash
        db_session.get = AsyncMock(return_value=officer)

        await OfficerService(db_session).update_officer(officer.id, {}, password="n3w-pass")

        assert officer.password_hash != original_hash
        assert PasswordHasher().verify(officer.password_hash, "n3w-pass")

    @pytest.mark.parametrize("field", ["name", "email", "mobile", "status"])
    async def test_null_for_required_field_rejected(self, db_session, field):
        with pytest.raises(ValueError, match=field):
            await OfficerService(db_session).update_officer(uuid4(), {field: None})

        db_session.flush.assert_not_called()

    async def test_unknown_plan_is_not_found(self, db_session, officer_factory):
        officer = officer_factory()

        async def get(model, ident):
            return officer if ident == officer.id else None

        db_session.get = AsyncMock(side_effect=get)

        with pytest.raises(ResourceNotFoundError):
            await OfficerService(db_session).update_officer(officer.id, {"plan_id": uuid4()})

        db_session.flush.assert_not_called()

    async def test_not_null_violation_is_invalid(self, db_session, officer_factory):
        officer = officer_factory()
        db_session.get = AsyncMock(return_value=officer)
        db_session.flush = AsyncMock(
            side_effect=IntegrityError(
                "UPDATE", {}, Exception('null value in column "department" violates not-null')
            )
        )

        with pytest.raises(DataIntegrityError):
            await OfficerService(db_session).update_officer(officer.id, {"department": "Cyber"})

        db_session.rollback.assert_awaited_once()


class TestDeleteOfficer:
    async def test_delete(self, db_session, officer_factory):
        officer = officer_factory()
        db_session.get = AsyncMock(return_value=officer)

        await OfficerService(db_session).delete_officer(officer.id)

        db_session.delete.assert_awaited_once_with(officer)
        db_session.commit.assert_awaited_once()

    async def test_delete_missing(self, db_session):
        missing = UUID(int=7)

        with pytest.raises(OfficerNotFoundError):
            await OfficerService(db_session).delete_officer(missing)
