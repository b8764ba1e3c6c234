"""
API Models - Pydantic models for request/response validation.

Enumerations mirror the CHECK constraints of the database schema.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OfficerStatus(str, Enum):
    """Officer status enumeration."""

    ACTIVE = "Active"
    SUSPENDED = "Suspended"


class ServiceType(str, Enum):
    """Lookup service tier."""

    FREE = "FREE"
    PRO = "PRO"
    DISABLED = "DISABLED"


class PlanStatus(str, Enum):
    """Rate plan status enumeration."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class UserType(str, Enum):
    """Audience a rate plan is sold to."""

    POLICE = "Police"
    PRIVATE = "Private"
    CUSTOM = "Custom"


class CredentialStatus(str, Enum):
    """Provider credential status enumeration."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class QueryType(str, Enum):
    """Query origin."""

    OSINT = "OSINT"
    PRO = "PRO"


class QueryStatus(str, Enum):
    """Query log status enumeration."""

    PROCESSING = "Processing"
    SUCCESS = "Success"
    FAILED = "Failed"
    PENDING = "Pending"


class TransactionAction(str, Enum):
    """Credit transaction action enumeration."""

    RENEWAL = "Renewal"
    DEDUCTION = "Deduction"
    TOP_UP = "Top-up"
    REFUND = "Refund"


class RegistrationStatus(str, Enum):
    """Officer registration review status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdminRole(str, Enum):
    """Admin console roles."""

    ADMIN = "admin"
    MODERATOR = "moderator"


# ============================================================================
# Lookup Models
# ============================================================================


class LookupRequest(BaseModel):
    """
    POST /v1/lookups request body.

    Fields are optional at the schema level so that missing values surface as
    a 400 InvalidRequest from the broker instead of a 422.
    """

    api_id: str | None = Field(None, max_length=64, description="Service (API) id")
    input_data: str | None = Field(None, max_length=1024, description="Lookup input")
    category: str | None = Field(None, max_length=255, description="Query category")
    officer_id: str | None = Field(None, max_length=64, description="Requesting officer id")


class LookupResponse(BaseModel):
    """POST /v1/lookups response body."""

    success: bool
    data: Any | None = None
    result_summary: str = ""
    credits_used: int = 0
    error: str | None = None


# ============================================================================
# Health Models
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    timestamp: str
