"""Abstract base class for provider adapters.

Rules:
- One HTTP call per generation, no retries
- Transport is chosen once per call from configuration, never mixed
- The gateway-first policy is enforced before any network access
- No logging of request/response bodies
- All failures surface as tagged GatewayError subclasses
"""

import json
from abc import ABC, abstractmethod

import httpx

from askgate.config import Settings
from askgate.errors import PolicyViolationError, ProviderError
from askgate.services.llm.extraction import extract_text
from askgate.services.llm.types import Transport, UpstreamCall

SYSTEM_PROMPT = "You are a helpful AI assistant."


class ProviderAdapter(ABC):
    """Base class for LLM provider adapters.

    Subclasses decide the transport and build the request envelope; the
    base class performs the call and normalizes the response to text.
    """

    #: Human-readable provider name used in error messages
    provider_label: str = "provider"

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        """Initialize adapter with shared HTTP client.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
            settings: Resolved application settings.
        """
        self._client = client
        self._settings = settings

    @abstractmethod
    def select_transport(self, variant: str | None) -> Transport:
        """Pick the transport for this call from configured settings."""

    @abstractmethod
    async def build_call(
        self, prompt: str, variant: str | None, transport: Transport
    ) -> UpstreamCall:
        """Build the provider request for the selected transport."""

    def check_policy(self, transport: Transport) -> None:
        """Refuse direct calls when the gateway-first policy is enforced.

        Raises:
            PolicyViolationError: If direct provider calls are disallowed.
        """
        if transport == Transport.DIRECT and self._settings.direct_provider_blocked:
            raise PolicyViolationError(
                f"Direct {self.provider_label} calls are disabled by gateway-first policy"
            )

    async def generate(self, prompt: str, variant: str | None = None) -> str:
        """Produce answer text for a prompt.

        Raises:
            PolicyViolationError: Direct transport selected under gateway-first policy.
            ConfigMissingError: Required provider settings are absent.
            AuthError: Upstream credentials could not be obtained.
            ProviderError: Upstream call failed or returned an unusable response.
        """
        transport = self.select_transport(variant)
        self.check_policy(transport)
        call = await self.build_call(prompt, variant, transport)
        data = await self._perform(call)
        return extract_text(data, call.strategies, provider=self.provider_label)

    async def _perform(self, call: UpstreamCall):
        try:
            response = await self._client.post(call.url, headers=call.headers, json=call.body)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.provider_label} request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.provider_label} network error") from e

        if not response.is_success:
            raise ProviderError(
                f"{self.provider_label} error ({response.status_code})",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProviderError(
                f"{self.provider_label} returned a non-JSON response",
                upstream_status=response.status_code,
            ) from e
