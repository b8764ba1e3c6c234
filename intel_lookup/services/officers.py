"""
Officer Service - Officer lookup for the broker and officer administration.

Passwords are hashed with Argon2id and never returned.
"""

import re
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from argon2 import PasswordHasher
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.config import settings
from intel_lookup.db.errors import integrity_error_for
from intel_lookup.db.models import Officer, RatePlan, utc_now
from intel_lookup.exceptions import (
    OfficerNotFoundError,
    OfficerUnauthorizedError,
    ResourceNotFoundError,
)
from intel_lookup.models.api import OfficerStatus
from intel_lookup.models.domain import OfficerSnapshot
from intel_lookup.observability.logging import get_logger

logger = get_logger(__name__)

# Columns an admin may change through update_officer()
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "email",
        "mobile",
        "telegram_id",
        "status",
        "department",
        "rank",
        "badge_number",
        "station",
        "plan_id",
    }
)

# NOT NULL columns among UPDATABLE_FIELDS
REQUIRED_FIELDS = frozenset({"name", "email", "mobile", "status"})


def parse_uuid(value: str) -> UUID | None:
    """Parse a UUID string, returning None when malformed."""
    try:
        return UUID(str(value))
    except ValueError:
        return None


def telegram_handle_for(name: str) -> str:
    """Default Telegram handle: @ followed by the lowercased name without whitespace."""
    return "@" + re.sub(r"\s+", "", name.lower())


@dataclass(frozen=True)
class OfficerCreate:
    """Details for a new officer account."""

    name: str
    email: str
    mobile: str
    password: str
    telegram_id: str | None = None
    status: OfficerStatus = OfficerStatus.ACTIVE
    department: str | None = None
    rank: str | None = None
    badge_number: str | None = None
    station: str | None = None
    plan_id: UUID | None = None
    credits_remaining: int | None = None
    total_credits: int | None = None


class OfficerService:
    """Officer reads and writes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.password_hasher = PasswordHasher()

    async def get_active_officer(self, officer_id: str) -> OfficerSnapshot:
        """
        Load an officer by id, requiring status Active.

        Raises:
            OfficerUnauthorizedError: Unknown id, malformed id, or not Active
        """
        parsed = parse_uuid(officer_id)
        if parsed is None:
            raise OfficerUnauthorizedError(officer_id)

        stmt = select(Officer).where(
            Officer.id == parsed,
            Officer.status == OfficerStatus.ACTIVE.value,
        )
        result = await self.session.execute(stmt)
        officer = result.scalar_one_or_none()
        if officer is None:
            raise OfficerUnauthorizedError(officer_id)

        return OfficerSnapshot(
            officer_id=officer.id,
            name=officer.name,
            status=OfficerStatus(officer.status),
            plan_id=officer.plan_id,
            credits_remaining=officer.credits_remaining,
            total_credits=officer.total_credits,
            total_queries=officer.total_queries,
        )

    # ========================================================================
    # Admin operations
    # ========================================================================

    async def list_officers(
        self,
        page: int = 1,
        page_size: int = 50,
        status: OfficerStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Officer], int]:
        """Paginated officer listing, newest first. Returns (officers, total)."""
        stmt = select(Officer)
        if status is not None:
            stmt = stmt.where(Officer.status == status.value)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                Officer.name.ilike(pattern)
                | Officer.email.ilike(pattern)
                | Officer.mobile.ilike(pattern)
                | Officer.badge_number.ilike(pattern)
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(Officer.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_officer(self, officer_id: UUID) -> Officer:
        """Raises OfficerNotFoundError when missing."""
        officer = await self.session.get(Officer, officer_id)
        if officer is None:
            raise OfficerNotFoundError(officer_id)
        return officer

    async def create_officer(self, data: OfficerCreate) -> Officer:
        """
        Create an officer with a hashed password.

        Credits default to DEFAULT_OFFICER_CREDITS for both the balance and the
        allotment.

        Raises:
            DuplicateResourceError: Email, mobile or telegram id already taken
            ResourceNotFoundError: plan_id names no rate plan
            DataIntegrityError: Any other constraint violation
        """
        if data.plan_id is not None:
            await self._require_plan(data.plan_id)

        default_credits = settings.default_officer_credits
        officer = Officer(
            name=data.name,
            email=data.email,
            mobile=data.mobile,
            telegram_id=data.telegram_id,
            password_hash=self.password_hasher.hash(data.password),
            status=data.status.value,
            department=data.department,
            rank=data.rank,
            badge_number=data.badge_number,
            station=data.station,
            plan_id=data.plan_id,
            credits_remaining=(
                data.credits_remaining if data.credits_remaining is not None else default_credits
            ),
            total_credits=data.total_credits if data.total_credits is not None else default_credits,
            total_queries=0,
        )
        self.session.add(officer)
        await self._flush_unique("officer")
        await self.session.commit()
        await self.session.refresh(officer)

        logger.info("officer_created", officer_id=str(officer.id), status=officer.status)
        return officer

    async def update_officer(
        self, officer_id: UUID, changes: dict[str, Any], password: str | None = None
    ) -> Officer:
        """
        Apply admin edits. A non-blank password is rehashed.

        Raises:
            OfficerNotFoundError: Officer doesn't exist
            ResourceNotFoundError: plan_id names no rate plan
            DuplicateResourceError: Unique column collision
            DataIntegrityError: Any other constraint violation
            ValueError: Unknown field, or null for a required field
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        nulls = sorted(key for key in REQUIRED_FIELDS.intersection(changes) if changes[key] is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")

        officer = await self.get_officer(officer_id)
        if changes.get("plan_id") is not None:
            await self._require_plan(changes["plan_id"])
        for key, value in changes.items():
            if isinstance(value, OfficerStatus):
                value = value.value
            setattr(officer, key, value)

        if password is not None and password.strip():
            officer.password_hash = self.password_hasher.hash(password)

        officer.updated_at = utc_now()
        await self._flush_unique("officer")
        await self.session.commit()
        await self.session.refresh(officer)

        logger.info(
            "officer_updated",
            officer_id=str(officer_id),
            fields=sorted(changes),
            password_changed=password is not None and bool(password.strip()),
        )
        return officer

    async def delete_officer(self, officer_id: UUID) -> None:
        """Delete an officer along with their queries and transactions."""
        officer = await self.get_officer(officer_id)
        await self.session.delete(officer)
        await self.session.commit()
        logger.info("officer_deleted", officer_id=str(officer_id))

    async def _require_plan(self, plan_id: UUID) -> None:
        if await self.session.get(RatePlan, plan_id) is None:
            raise ResourceNotFoundError("RatePlan", plan_id)

    async def _flush_unique(self, resource: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise integrity_error_for(
                exc, resource, "email, mobile or telegram id already in use"
            ) from exc
