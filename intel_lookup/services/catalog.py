"""
Service Catalog - administration of lookup service definitions (apis table).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.errors import integrity_error_for
from intel_lookup.db.models import Service, utc_now
from intel_lookup.exceptions import ResourceNotFoundError
from intel_lookup.models.api import ServiceType
from intel_lookup.observability.logging import get_logger

logger = get_logger(__name__)

SERVICE_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "type",
        "service_provider",
        "global_buy_price",
        "global_sell_price",
        "default_credit_charge",
        "description",
    }
)
SERVICE_NULLABLE_FIELDS = frozenset({"description"})


@dataclass(frozen=True)
class ServiceCreate:
    name: str
    type: ServiceType
    service_provider: str = "Direct"
    global_buy_price: Decimal = Decimal("0")
    global_sell_price: Decimal = Decimal("0")
    default_credit_charge: int = 0
    description: str | None = None


class ServiceCatalog:
    """CRUD over service definitions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_services(self) -> list[Service]:
        result = await self.session.execute(select(Service).order_by(Service.created_at.desc()))
        return list(result.scalars().all())

    async def get_service(self, service_id: UUID) -> Service:
        service = await self.session.get(Service, service_id)
        if service is None:
            raise ResourceNotFoundError("Service", service_id)
        return service

    async def create_service(self, data: ServiceCreate) -> Service:
        """
        Raises:
            DuplicateResourceError: Service name already exists
        """
        service = Service(
            name=data.name,
            type=data.type.value,
            service_provider=data.service_provider,
            global_buy_price=data.global_buy_price,
            global_sell_price=data.global_sell_price,
            default_credit_charge=data.default_credit_charge,
            description=data.description,
        )
        self.session.add(service)
        await self._flush_unique(data.name)
        await self.session.commit()
        await self.session.refresh(service)
        logger.info("service_created", service_id=str(service.id), name=service.name)
        return service

    async def update_service(self, service_id: UUID, changes: dict[str, Any]) -> Service:
        unknown = set(changes) - SERVICE_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        nulls = sorted(
            k for k, v in changes.items() if v is None and k not in SERVICE_NULLABLE_FIELDS
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")

        service = await self.get_service(service_id)
        for key, value in changes.items():
            if isinstance(value, ServiceType):
                value = value.value
            setattr(service, key, value)
        service.updated_at = utc_now()

        await self._flush_unique(str(changes.get("name", service.name)))
        await self.session.commit()
        await self.session.refresh(service)
        logger.info("service_updated", service_id=str(service_id), fields=sorted(changes))
        return service

    async def delete_service(self, service_id: UUID) -> None:
        """Deleting a service cascades to its plan bindings and credential."""
        service = await self.get_service(service_id)
        await self.session.delete(service)
        await self.session.commit()
        logger.info("service_deleted", service_id=str(service_id))

    async def _flush_unique(self, name: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise integrity_error_for(exc, "service", f"name {name!r} already exists") from exc
