"""
Provider Adapter Protocol - Provider-agnostic lookup interface.

Every external verification API is wrapped by an adapter that normalizes its
response into an AdapterResult. Adapters never persist anything and never log
payloads or credentials.
"""

from enum import Enum
from typing import Protocol

from intel_lookup.models.domain import AdapterResult


class ServiceName(str, Enum):
    """Service names that have a registered adapter."""

    PHONE_PREFILL_V2 = "Phone Prefill V2"
    RC_VERIFICATION = "RC Verification"
    CREDIT_HISTORY = "Credit History"
    CELL_ID_LOCATION = "Cell ID Location"

    @classmethod
    def parse(cls, name: str) -> "ServiceName | None":
        """Map a stored service name onto the enumeration, or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


class ProviderAdapter(Protocol):
    """
    Lookup provider protocol.

    Any external verification provider (Signzy, Surepass, CIBIL, ...) must
    implement this interface.
    """

    provider_name: str

    async def lookup(self, input_data: str, api_key: str) -> AdapterResult:
        """
        Run a lookup against the provider.

        Args:
            input_data: Officer-supplied lookup input (phone, RC, PAN, cell id)
            api_key: Provider secret resolved by the broker

        Returns:
            Normalized adapter result

        Raises:
            ProviderCallError: If the provider call fails
        """
        ...
