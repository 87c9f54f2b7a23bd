"""Google AI Studio (Gemini API) adapter.

Endpoints:
- GATEWAY: POST {gateway}/google-ai-studio/v1beta/models/{model}:generateContent
- DIRECT:  POST https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent

Auth:
- Header: x-goog-api-key: <key>
- NEVER put key in query param

Request body:
{
  "contents": [{"role": "user", "parts": [{"text": "..."}]}]
}

Response: candidates[0].content.parts[].text, non-empty parts joined with a
blank line.
"""

from askgate.errors import ConfigMissingError
from askgate.services.llm import gateway
from askgate.services.llm.adapter import ProviderAdapter
from askgate.services.llm.extraction import gemini_candidates
from askgate.services.llm.types import Transport, Turn, UpstreamCall

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def build_contents(prompt: str) -> list[dict]:
    """Single-prompt content array shared by the Gemini-family adapters."""
    turn = Turn(role="user", content=prompt)
    return [{"role": turn.role, "parts": [{"text": turn.content}]}]


class GeminiAdapter(ProviderAdapter):
    """Gemini API adapter for Google AI Studio keys."""

    provider_label = "Google AI Studio"

    def select_transport(self, variant: str | None) -> Transport:
        if self._settings.has_gateway:
            return Transport.GATEWAY
        return Transport.DIRECT

    async def build_call(
        self, prompt: str, variant: str | None, transport: Transport
    ) -> UpstreamCall:
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise ConfigMissingError("Google AI Studio configuration missing: GEMINI_API_KEY")

        model = variant or self._settings.gemini_model
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }

        if transport == Transport.GATEWAY:
            base = gateway.gateway_base_url(self._settings, gateway.GOOGLE_AI_STUDIO)
            url = f"{base}/v1beta/models/{model}:generateContent"
            headers.update(gateway.gateway_headers(self._settings))
        else:
            url = f"{GEMINI_BASE_URL}/{model}:generateContent"

        return UpstreamCall(
            url=url,
            headers=headers,
            body={"contents": build_contents(prompt)},
            transport=transport,
            strategies=(gemini_candidates,),
            upstream_model=model,
        )
