"""Shared type definitions for the provider adapter layer.

- Turn: Provider-agnostic chat message
- Transport: How a call reaches the provider (gateway, gateway compat, direct)
- UpstreamCall: A fully built provider HTTP request plus the extraction
  strategies for its response
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


@dataclass(frozen=True)
class Turn:
    """Provider-agnostic conversation turn."""

    role: Literal["system", "user", "assistant"]
    content: str


class Transport(str, Enum):
    """Route taken to a provider for a single call.

    GATEWAY: provider-native API proxied through the AI Gateway
    GATEWAY_COMPAT: the gateway's OpenAI-compatible endpoint
    DIRECT: the provider's public API, no gateway
    """

    GATEWAY = "gateway"
    GATEWAY_COMPAT = "gateway_compat"
    DIRECT = "direct"


ExtractionStrategy = Callable[[Any], str | None]


@dataclass(frozen=True)
class UpstreamCall:
    """A provider request ready to send.

    Attributes:
        url: Full endpoint URL (never carries credentials)
        headers: Request headers including auth
        body: JSON request body
        transport: Route this call takes
        strategies: Ordered text extraction strategies for the response
        upstream_model: Provider model identifier, for logging
    """

    url: str
    headers: dict[str, str]
    body: dict
    transport: Transport
    strategies: Sequence[ExtractionStrategy] = field(default_factory=tuple)
    upstream_model: str | None = None
