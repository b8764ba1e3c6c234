"""
Database Models - SQLAlchemy ORM models with strict typing.

All columns use Mapped[] type annotations. Status columns store the enum
values as plain strings, guarded by CHECK constraints.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import INET, JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class AdminUser(Base):
    """
    ORM model for admin_users table.

    Accounts allowed to use the admin console.
    """

    __tablename__ = "admin_users"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="admin")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'moderator')", name="ck_admin_users_role"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<AdminUser(id={self.id}, email={self.email}, role={self.role})>"


class Service(Base):
    """
    ORM model for apis table.

    Definition of a lookup capability offered by an external provider.
    """

    __tablename__ = "apis"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    service_provider: Mapped[str] = mapped_column(String(255), nullable=False, default="Direct")
    global_buy_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    global_sell_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    default_credit_charge: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    credential: Mapped["ProviderCredential | None"] = relationship(
        "ProviderCredential", back_populates="service", uselist=False, lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("type IN ('FREE', 'PRO', 'DISABLED')", name="ck_apis_type"),
        CheckConstraint("default_credit_charge >= 0", name="ck_apis_credit_charge_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Service(id={self.id}, name={self.name}, type={self.type})>"


class RatePlan(Base):
    """
    ORM model for rate_plans table.

    Subscription plan that bundles service entitlements.
    """

    __tablename__ = "rate_plans"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    plan_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    monthly_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    default_credits: Mapped[int] = mapped_column(Integer, nullable=False)
    renewal_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    topup_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    services: Mapped[list["PlanService"]] = relationship(
        "PlanService", back_populates="plan", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('Police', 'Private', 'Custom')", name="ck_rate_plans_user_type"
        ),
        CheckConstraint("status IN ('Active', 'Inactive')", name="ck_rate_plans_status"),
        CheckConstraint("default_credits >= 0", name="ck_rate_plans_default_credits"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<RatePlan(id={self.id}, plan_name={self.plan_name}, status={self.status})>"


class PlanService(Base):
    """
    ORM model for plan_apis table.

    Sole source of truth for whether a plan may call a service and at what cost.
    """

    __tablename__ = "plan_apis"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    plan_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("rate_plans.id", ondelete="CASCADE"),
        nullable=False,
    )
    service_id: Mapped[UUID] = mapped_column(
        "api_id",
        PG_UUID(as_uuid=True),
        ForeignKey("apis.id", ondelete="CASCADE"),
        nullable=False,
    )
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    credit_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    buy_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    sell_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    plan: Mapped[RatePlan] = relationship("RatePlan", back_populates="services")

    __table_args__ = (
        UniqueConstraint("plan_id", "api_id", name="uq_plan_apis_plan_api"),
        CheckConstraint("credit_cost >= 0", name="ck_plan_apis_credit_cost_non_negative"),
        Index("idx_plan_apis_plan_id", "plan_id"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<PlanService(plan_id={self.plan_id}, service_id={self.service_id}, "
            f"enabled={self.enabled}, credit_cost={self.credit_cost})>"
        )


class ProviderCredential(Base):
    """
    ORM model for provider_credentials table.

    Secret key material for a service's external API. One row per service.
    """

    __tablename__ = "provider_credentials"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    service_id: Mapped[UUID] = mapped_column(
        "api_id",
        PG_UUID(as_uuid=True),
        ForeignKey("apis.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    api_key: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    service: Mapped[Service] = relationship("Service", back_populates="credential")

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Inactive')", name="ck_provider_credentials_status"),
        CheckConstraint("usage_count >= 0", name="ck_provider_credentials_usage_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation for debugging. Never includes the key."""
        return (
            f"<ProviderCredential(id={self.id}, service_id={self.service_id}, "
            f"status={self.status}, usage_count={self.usage_count})>"
        )


class Officer(Base):
    """
    ORM model for officers table.

    credits_remaining and total_credits are a running balance kept in lockstep
    with credit_transactions inserts.
    """

    __tablename__ = "officers"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Identity and contact
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    mobile: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    telegram_id: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Status
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    # Posting
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rank: Mapped[str | None] = mapped_column(String(100), nullable=True)
    badge_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    station: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Plan and balance
    plan_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("rate_plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    total_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    total_queries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Activity
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    registered_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Suspended')", name="ck_officers_status"),
        CheckConstraint("credits_remaining >= 0", name="ck_officers_credits_non_negative"),
        CheckConstraint("total_credits >= 0", name="ck_officers_total_credits_non_negative"),
        CheckConstraint("total_queries >= 0", name="ck_officers_total_queries_non_negative"),
        Index("idx_officers_status", "status"),
        Index("idx_officers_plan_id", "plan_id"),
        Index("idx_officers_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Officer(id={self.id}, name={self.name}, status={self.status}, "
            f"credits_remaining={self.credits_remaining})>"
        )


class OfficerRegistration(Base):
    """
    ORM model for officer_registrations table.

    Self-service sign-up requests awaiting admin review.
    """

    __tablename__ = "officer_registrations"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    mobile: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    station: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rank: Mapped[str | None] = mapped_column(String(100), nullable=True)
    badge_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_officer_registrations_status"
        ),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<OfficerRegistration(id={self.id}, email={self.email}, status={self.status})>"


class QueryLogEntry(Base):
    """
    ORM model for queries table.

    Immutable audit record, written once per lookup attempt with its final status.
    """

    __tablename__ = "queries"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    officer_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("officers.id", ondelete="CASCADE"), nullable=False
    )
    officer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    input_data: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    result_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_result: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Processing")
    ip_address: Mapped[str | None] = mapped_column(INET, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("type IN ('OSINT', 'PRO')", name="ck_queries_type"),
        CheckConstraint(
            "status IN ('Processing', 'Success', 'Failed', 'Pending')", name="ck_queries_status"
        ),
        CheckConstraint("credits_used >= 0", name="ck_queries_credits_non_negative"),
        Index("idx_queries_officer_id", "officer_id"),
        Index("idx_queries_status", "status"),
        Index("idx_queries_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<QueryLogEntry(id={self.id}, officer_id={self.officer_id}, "
            f"status={self.status}, credits_used={self.credits_used})>"
        )


class CreditTransaction(Base):
    """
    ORM model for credit_transactions table.

    Append-only ledger. Source of truth for credit audit.
    """

    __tablename__ = "credit_transactions"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    officer_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("officers.id", ondelete="CASCADE"), nullable=False
    )
    officer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)

    # Balance snapshots (denormalized for auditing)
    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    payment_mode: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Department Budget"
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "action IN ('Renewal', 'Deduction', 'Top-up', 'Refund')",
            name="ck_credit_transactions_action",
        ),
        CheckConstraint("balance_after >= 0", name="ck_credit_transactions_balance_non_negative"),
        Index("idx_credit_transactions_officer_id", "officer_id"),
        Index("idx_credit_transactions_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<CreditTransaction(id={self.id}, officer_id={self.officer_id}, "
            f"action={self.action}, credits={self.credits})>"
        )
