"""
Signzy Phone Prefill V2 adapter.

Resolves a mobile number to the identity details on record with the telecom KYC
bureau.
"""

import re
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from intel_lookup.exceptions import ProviderCallError
from intel_lookup.models.domain import AdapterResult
from intel_lookup.observability.logging import get_logger

logger = get_logger(__name__)

_COUNTRY_PREFIX = re.compile(r"^\+91")
_WHITESPACE = re.compile(r"\s+")

# (response key, summary label) in display order
_SUMMARY_FIELDS = (
    ("name", "Name"),
    ("email", "Email"),
    ("alternatePhone", "Alt Phone"),
    ("address", "Address"),
    ("dob", "DOB"),
)


def normalize_mobile_number(phone_number: str) -> str:
    """Strip a leading +91 and all whitespace."""
    return _WHITESPACE.sub("", _COUNTRY_PREFIX.sub("", phone_number))


def format_prefill_summary(payload: Any) -> str:
    """Build the one-line summary shown to the officer."""
    if not isinstance(payload, dict) or not payload.get("result"):
        return "No data found for this number"

    result = payload["result"]
    if not isinstance(result, dict):
        return "Basic verification completed"

    parts = [f"{label}: {result[key]}" for key, label in _SUMMARY_FIELDS if result.get(key)]
    return " | ".join(parts) if parts else "Basic verification completed"


class SignzyPhonePrefillAdapter:
    """Signzy phone prefill provider implementation."""

    provider_name = "Signzy"
    PREFILL_PATH = "/api/v3/phonekyc/phone-prefill-v2"
    NOMINAL_CREDITS = 2

    def __init__(
        self,
        base_url: str,
        client_unique_id: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_unique_id = client_unique_id
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._http_client

    def _build_request_body(self, mobile_number: str) -> dict[str, Any]:
        now = datetime.now(UTC)
        return {
            "mobileNumber": mobile_number,
            "fullName": "VERIFICATION",
            "consent": {
                "consentFlag": True,
                "consentTimestamp": now.isoformat(),
                "consentIpAddress": "127.0.0.1",
                "consentMessageId": f"consent_{int(time.time() * 1000)}",
            },
        }

    async def lookup(self, input_data: str, api_key: str) -> AdapterResult:
        """Call phone prefill and summarize the identity details returned."""
        mobile_number = normalize_mobile_number(input_data)

        try:
            response = await self.http_client.post(
                f"{self.base_url}{self.PREFILL_PATH}",
                json=self._build_request_body(mobile_number),
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "x-client-unique-id": self.client_unique_id,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "provider_call_failed",
                provider=self.provider_name,
                status=exc.response.status_code,
            )
            raise ProviderCallError(
                self.provider_name,
                f"{exc.response.status_code} {exc.response.reason_phrase}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "provider_call_failed", provider=self.provider_name, error=type(exc).__name__
            )
            raise ProviderCallError(self.provider_name, f"transport error: {exc}") from exc
        except ValueError as exc:
            logger.warning("provider_call_failed", provider=self.provider_name, error="bad_json")
            raise ProviderCallError(self.provider_name, "invalid JSON in response") from exc

        return AdapterResult(
            success=True,
            data=payload,
            credits_used=self.NOMINAL_CREDITS,
            result_summary=format_prefill_summary(payload),
        )
