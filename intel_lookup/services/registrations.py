"""
Registration Review - approve or reject officer sign-up requests.
"""

import secrets
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.models import Officer, OfficerRegistration, utc_now
from intel_lookup.exceptions import ResourceNotFoundError
from intel_lookup.models.api import RegistrationStatus
from intel_lookup.observability.logging import get_logger
from intel_lookup.services.officers import OfficerCreate, OfficerService, telegram_handle_for

logger = get_logger(__name__)


class RegistrationService:
    """Admin review of officer_registrations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_registrations(
        self, status: RegistrationStatus | None = None
    ) -> list[OfficerRegistration]:
        stmt = select(OfficerRegistration)
        if status is not None:
            stmt = stmt.where(OfficerRegistration.status == status.value)
        stmt = stmt.order_by(OfficerRegistration.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def review(
        self,
        registration_id: UUID,
        decision: RegistrationStatus,
        reviewed_by: str,
        rejection_reason: str | None = None,
    ) -> tuple[OfficerRegistration, Officer | None]:
        """
        Record a review decision.

        Approval creates an Active officer with the default credit allotment,
        a Telegram handle derived from the name, and a random password that an
        admin must reset before the officer can sign in.

        Raises:
            ResourceNotFoundError: Registration doesn't exist
            ValueError: Decision is not approved/rejected, or already reviewed
            DuplicateResourceError: Approved applicant collides with an existing officer
        """
        if decision == RegistrationStatus.PENDING:
            raise ValueError("Review decision must be approved or rejected")

        registration = await self.session.get(OfficerRegistration, registration_id)
        if registration is None:
            raise ResourceNotFoundError("OfficerRegistration", registration_id)
        if registration.status != RegistrationStatus.PENDING.value:
            raise ValueError(f"Registration already {registration.status}")

        registration.status = decision.value
        registration.reviewed_at = utc_now()
        registration.reviewed_by = reviewed_by
        registration.rejection_reason = (
            rejection_reason if decision == RegistrationStatus.REJECTED else None
        )

        officer: Officer | None = None
        if decision == RegistrationStatus.APPROVED:
            # create_officer commits the registration update with the new officer
            officer = await OfficerService(self.session).create_officer(
                OfficerCreate(
                    name=registration.name,
                    email=registration.email,
                    mobile=registration.mobile,
                    password=secrets.token_urlsafe(24),
                    telegram_id=telegram_handle_for(registration.name),
                    department=registration.department,
                    rank=registration.rank,
                    badge_number=registration.badge_number,
                    station=registration.station,
                )
            )
        else:
            await self.session.commit()

        await self.session.refresh(registration)
        logger.info(
            "registration_reviewed",
            registration_id=str(registration_id),
            decision=decision.value,
            officer_id=str(officer.id) if officer else None,
        )
        return registration, officer
