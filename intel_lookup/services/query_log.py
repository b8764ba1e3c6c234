"""
Query Logger - one immutable audit row per dispatched lookup.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.models import QueryLogEntry
from intel_lookup.exceptions import PersistenceWarning
from intel_lookup.models.api import QueryStatus, QueryType
from intel_lookup.observability.logging import get_logger
from intel_lookup.observability.metrics import metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueryRecord:
    """Final state of a lookup, written once."""

    officer_id: UUID
    officer_name: str
    category: str
    input_data: str
    source: str
    result_summary: str
    full_result: Any | None
    credits_used: int
    status: QueryStatus
    ip_address: str | None = None
    user_agent: str | None = None
    query_type: QueryType = QueryType.PRO


class QueryLogger:
    """Writes query log entries. Failures are reported, never raised."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(self, record: QueryRecord) -> UUID | None:
        """
        Insert and commit one query log entry.

        Returns the entry id, or None if the write failed. A failure rolls the
        session back and is logged as a PersistenceWarning.
        """
        entry = QueryLogEntry(
            officer_id=record.officer_id,
            officer_name=record.officer_name,
            type=record.query_type.value,
            category=record.category,
            input_data=record.input_data,
            source=record.source,
            result_summary=record.result_summary,
            full_result=record.full_result,
            credits_used=record.credits_used,
            status=record.status.value,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
        )
        try:
            self.session.add(entry)
            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            warning = PersistenceWarning("query_log", str(exc))
            logger.error(
                "query_log_write_failed",
                officer_id=str(record.officer_id),
                operation=warning.operation,
                status=record.status.value,
                error=warning.message,
            )
            metrics.record_persistence_warning(warning.operation)
            return None

        return entry.id
