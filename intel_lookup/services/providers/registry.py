"""
Adapter registry - ServiceName to ProviderAdapter mapping built at startup.
"""

import httpx

from intel_lookup.config import Settings
from intel_lookup.services.providers.base import ProviderAdapter, ServiceName
from intel_lookup.services.providers.sandbox import (
    CibilCreditHistoryAdapter,
    SurepassRCAdapter,
    TelecomCellIdAdapter,
)
from intel_lookup.services.providers.signzy import SignzyPhonePrefillAdapter

AdapterRegistry = dict[ServiceName, ProviderAdapter]


def build_adapter_registry(http_client: httpx.AsyncClient, settings: Settings) -> AdapterRegistry:
    """Create one adapter per supported service, sharing the HTTP client."""
    latency = settings.sandbox_latency_seconds
    return {
        ServiceName.PHONE_PREFILL_V2: SignzyPhonePrefillAdapter(
            base_url=settings.signzy_base_url,
            client_unique_id=settings.signzy_client_unique_id,
            http_client=http_client,
            timeout_seconds=settings.provider_timeout_seconds,
        ),
        ServiceName.RC_VERIFICATION: SurepassRCAdapter(latency_seconds=latency),
        ServiceName.CREDIT_HISTORY: CibilCreditHistoryAdapter(latency_seconds=latency),
        ServiceName.CELL_ID_LOCATION: TelecomCellIdAdapter(latency_seconds=latency),
    }
