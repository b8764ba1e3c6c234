"""
Provider Credential Service - secret resolution and masked administration.

The raw api_key only leaves this module inside a ResolvedProvider handed to
the broker. Admin views always carry the masked form.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.errors import integrity_error_for
from intel_lookup.db.models import ProviderCredential, Service, utc_now
from intel_lookup.exceptions import (
    DuplicateResourceError,
    ProviderUnavailableError,
    ResourceNotFoundError,
)
from intel_lookup.models.api import CredentialStatus
from intel_lookup.models.domain import ResolvedProvider
from intel_lookup.observability.logging import get_logger
from intel_lookup.observability.metrics import metrics

logger = get_logger(__name__)

MASK_VISIBLE_CHARS = 8
MASK_PADDING = "*" * 24


def mask_api_key(api_key: str) -> str:
    """First 8 characters followed by 24 asterisks."""
    return f"{api_key[:MASK_VISIBLE_CHARS]}{MASK_PADDING}"


@dataclass(frozen=True)
class CredentialView:
    """Credential as shown to administrators."""

    credential_id: UUID
    service_id: UUID
    service_name: str
    masked_key: str
    status: CredentialStatus
    usage_count: int
    last_used: datetime | None
    created_at: datetime


class ProviderCredentialService:
    """Resolve, track and administer provider credentials."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ========================================================================
    # Broker operations
    # ========================================================================

    async def resolve(self, service_id: UUID) -> ResolvedProvider:
        """
        Join the service with its active credential.

        Raises:
            ProviderUnavailableError: Service missing, no credential, or credential inactive
        """
        stmt = (
            select(Service, ProviderCredential)
            .join(ProviderCredential, ProviderCredential.service_id == Service.id)
            .where(Service.id == service_id)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            raise ProviderUnavailableError(str(service_id))

        service, credential = row
        if credential.status != CredentialStatus.ACTIVE.value:
            raise ProviderUnavailableError(str(service_id))

        return ResolvedProvider(
            service_id=service.id,
            service_name=service.name,
            service_provider=service.service_provider,
            credential_id=credential.id,
            api_key=credential.api_key,
        )

    async def record_usage(self, service_id: UUID) -> None:
        """
        Bump usage_count and last_used in a single UPDATE.

        Best-effort: failures are logged and swallowed.
        """
        stmt = (
            update(ProviderCredential)
            .where(ProviderCredential.service_id == service_id)
            .values(usage_count=ProviderCredential.usage_count + 1, last_used=utc_now())
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "credential_usage_update_failed", service_id=str(service_id), error=str(exc)
            )
            metrics.record_persistence_warning("credential_usage")

    # ========================================================================
    # Admin operations
    # ========================================================================

    async def list_credentials(self) -> list[CredentialView]:
        """All credentials, masked, newest first."""
        stmt = (
            select(ProviderCredential, Service.name)
            .join(Service, ProviderCredential.service_id == Service.id)
            .order_by(ProviderCredential.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_view(credential, name) for credential, name in result.all()]

    async def create_credential(
        self,
        service_id: UUID,
        api_key: str,
        status: CredentialStatus = CredentialStatus.ACTIVE,
    ) -> CredentialView:
        """
        Store the credential for a service.

        Raises:
            ResourceNotFoundError: Service doesn't exist
            DuplicateResourceError: Service already has a credential
        """
        service = await self.session.get(Service, service_id)
        if service is None:
            raise ResourceNotFoundError("Service", service_id)

        existing = await self.session.execute(
            select(ProviderCredential.id).where(ProviderCredential.service_id == service_id)
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateResourceError("credential", f"service {service.name} already has a key")

        credential = ProviderCredential(
            service_id=service_id,
            api_key=api_key,
            status=status.value,
            usage_count=0,
        )
        self.session.add(credential)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise integrity_error_for(
                exc, "credential", f"service {service.name} already has a key"
            ) from exc
        await self.session.commit()
        await self.session.refresh(credential)

        logger.info(
            "credential_created", credential_id=str(credential.id), service_id=str(service_id)
        )
        return self._to_view(credential, service.name)

    async def update_credential(
        self,
        credential_id: UUID,
        api_key: str | None = None,
        status: CredentialStatus | None = None,
    ) -> CredentialView:
        """
        Rotate the key and/or change the status.

        Raises:
            ResourceNotFoundError: Credential doesn't exist
        """
        credential = await self.session.get(ProviderCredential, credential_id)
        if credential is None:
            raise ResourceNotFoundError("ProviderCredential", credential_id)

        if api_key is not None:
            credential.api_key = api_key
        if status is not None:
            credential.status = status.value

        await self.session.commit()
        await self.session.refresh(credential)

        service = await self.session.get(Service, credential.service_id)
        logger.info(
            "credential_updated",
            credential_id=str(credential_id),
            key_rotated=api_key is not None,
            status=credential.status,
        )
        return self._to_view(credential, service.name if service else "")

    async def delete_credential(self, credential_id: UUID) -> None:
        """
        Remove a credential.

        Raises:
            ResourceNotFoundError: Credential doesn't exist
        """
        credential = await self.session.get(ProviderCredential, credential_id)
        if credential is None:
            raise ResourceNotFoundError("ProviderCredential", credential_id)

        await self.session.delete(credential)
        await self.session.commit()
        logger.info("credential_deleted", credential_id=str(credential_id))

    @staticmethod
    def _to_view(credential: ProviderCredential, service_name: str) -> CredentialView:
        return CredentialView(
            credential_id=credential.id,
            service_id=credential.service_id,
            service_name=service_name,
            masked_key=mask_api_key(credential.api_key),
            status=CredentialStatus(credential.status),
            usage_count=credential.usage_count,
            last_used=credential.last_used,
            created_at=credential.created_at,
        )
