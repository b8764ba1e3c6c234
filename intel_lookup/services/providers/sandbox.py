"""
Sandbox adapters for providers without a live integration yet.

Each adapter waits a configurable latency and returns a fixed payload shaped
like the provider's real response.
"""

import asyncio
from datetime import UTC, datetime

from intel_lookup.models.domain import AdapterResult


class SandboxAdapter:
    """Base for simulated providers."""

    provider_name = "Sandbox"
    NOMINAL_CREDITS = 0

    def __init__(self, latency_seconds: float = 1.0) -> None:
        self.latency_seconds = latency_seconds

    async def _simulate_latency(self) -> None:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)


# TODO: replace with the Surepass RC verification endpoint once credentials are provisioned
class SurepassRCAdapter(SandboxAdapter):
    """Vehicle registration certificate lookup (Surepass)."""

    provider_name = "Surepass"
    NOMINAL_CREDITS = 1

    async def lookup(self, input_data: str, api_key: str) -> AdapterResult:
        await self._simulate_latency()
        return AdapterResult(
            success=True,
            data={
                "rc_number": input_data,
                "vehicle_type": "Car",
                "owner_name": "Mock Owner",
                "registration_date": "2020-01-15",
            },
            credits_used=self.NOMINAL_CREDITS,
            result_summary=f"RC verification completed for {input_data}",
        )


class CibilCreditHistoryAdapter(SandboxAdapter):
    """PAN based credit history lookup (CIBIL)."""

    provider_name = "CIBIL"
    NOMINAL_CREDITS = 5

    async def lookup(self, input_data: str, api_key: str) -> AdapterResult:
        await self._simulate_latency()
        return AdapterResult(
            success=True,
            data={
                "pan_number": input_data,
                "credit_score": 750,
                "credit_history": "Good",
                "last_updated": datetime.now(UTC).isoformat(),
            },
            credits_used=self.NOMINAL_CREDITS,
            result_summary=f"Credit score: 750 (Good) for PAN {input_data}",
        )


class TelecomCellIdAdapter(SandboxAdapter):
    """Cell tower location lookup (TelecomAPI)."""

    provider_name = "TelecomAPI"
    NOMINAL_CREDITS = 3

    async def lookup(self, input_data: str, api_key: str) -> AdapterResult:
        await self._simulate_latency()
        return AdapterResult(
            success=True,
            data={
                "cell_id": input_data,
                "latitude": 28.6139,
                "longitude": 77.2090,
                "location": "New Delhi, India",
                "coverage_radius": "2.5 km",
            },
            credits_used=self.NOMINAL_CREDITS,
            result_summary=f"Cell tower {input_data} located in New Delhi, India",
        )
