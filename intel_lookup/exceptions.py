"""
Exception Classes - Strongly typed exception hierarchy.

Gate errors abort a lookup before any side effect. ProviderCallError and
PersistenceWarning never reach the caller.
"""

from uuid import UUID


class LookupBrokerError(Exception):
    """Base exception for all lookup broker errors."""

    pass


class InvalidRequestError(LookupBrokerError):
    """Raised when a lookup request is missing required fields."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}")


class OfficerUnauthorizedError(LookupBrokerError):
    """Raised when the officer does not exist or is not active."""

    def __init__(self, officer_id: str) -> None:
        self.officer_id = officer_id
        super().__init__("Officer not found or inactive")


class EntitlementDeniedError(LookupBrokerError):
    """Raised when the officer's plan has no enabled entitlement for the service."""

    def __init__(self, plan_id: UUID | None, service_id: str) -> None:
        self.plan_id = plan_id
        self.service_id = service_id
        super().__init__("API not enabled for your plan")


class InsufficientCreditsError(LookupBrokerError):
    """Raised when the officer balance is below the entitlement's credit cost."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(f"Insufficient credits. Required: {required}, Available: {available}")


class ProviderUnavailableError(LookupBrokerError):
    """Raised when the service has no active provider credential."""

    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        super().__init__("API key not found or inactive")


class UnsupportedProviderError(LookupBrokerError):
    """Raised when no adapter is registered for the service name."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f"Unsupported API: {service_name}")


class ProviderCallError(LookupBrokerError):
    """Raised by adapters when the external provider call fails."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"{provider} API call failed: {message}")


class PersistenceWarning(LookupBrokerError):
    """Raised when an audit or ledger write fails after the lookup outcome is known."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"Persistence warning during {operation}: {message}")


class OfficerNotFoundError(LookupBrokerError):
    """Raised when a ledger or admin operation targets a missing officer."""

    def __init__(self, officer_id: UUID) -> None:
        self.officer_id = officer_id
        super().__init__(f"Officer not found: {officer_id}")


class ResourceNotFoundError(LookupBrokerError):
    """Raised when an admin operation targets a missing resource."""

    def __init__(self, resource: str, resource_id: UUID | str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found: {resource_id}")


class DuplicateResourceError(LookupBrokerError):
    """Raised when a unique constraint would be violated."""

    def __init__(self, resource: str, message: str) -> None:
        self.resource = resource
        self.message = message
        super().__init__(f"Duplicate {resource}: {message}")


class WriteVerificationError(LookupBrokerError):
    """Raised when database write verification fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Write verification failed: {message}")


class DataIntegrityError(LookupBrokerError):
    """Raised when a write violates a non-unique constraint (NOT NULL, FK, CHECK)."""

    def __init__(self, resource: str, message: str) -> None:
        self.resource = resource
        self.message = message
        super().__init__(f"Invalid {resource}: {message}")
