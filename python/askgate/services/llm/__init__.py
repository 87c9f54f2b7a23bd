"""Provider adapter layer.

A unified interface for calling Cloudflare Workers AI, Google Vertex AI,
Google AI Studio, and OpenAI. It includes:

- Provider adapters (async, one HTTP call each, no retries)
- Transport selection (AI Gateway vs direct) and the gateway-first policy
- Ordered response-shape extraction strategies
- Model availability gating driven by Settings capability flags

Usage:
    from askgate.services.llm import ProviderRouter

    router = ProviderRouter(httpx_client, settings, kv_store)
    answer = await router.call_ai("2+2?", "cloudflare")
"""

from askgate.services.llm.adapter import ProviderAdapter
from askgate.services.llm.extraction import extract_text
from askgate.services.llm.router import ProviderRouter
from askgate.services.llm.types import Transport, Turn, UpstreamCall

__all__ = [
    "ProviderAdapter",
    "ProviderRouter",
    "Transport",
    "Turn",
    "UpstreamCall",
    "extract_text",
]
