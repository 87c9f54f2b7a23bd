"""OpenAI adapter.

Endpoints:
- GATEWAY: POST {gateway}/openai/chat/completions
- DIRECT:  POST https://api.openai.com/v1/chat/completions

Headers: Authorization: Bearer <OPENAI_API_KEY>, Content-Type: application/json

Request body:
{
  "model": "<model_name>",
  "messages": [
    {"role": "system", "content": "..."},
    {"role": "user", "content": "..."}
  ]
}

Response: text = choices[0].message.content
"""

from askgate.errors import ConfigMissingError
from askgate.services.llm import gateway
from askgate.services.llm.adapter import SYSTEM_PROMPT, ProviderAdapter
from askgate.services.llm.extraction import openai_choices
from askgate.services.llm.types import Transport, Turn, UpstreamCall

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions adapter."""

    provider_label = "OpenAI"

    def select_transport(self, variant: str | None) -> Transport:
        if self._settings.has_gateway:
            return Transport.GATEWAY
        return Transport.DIRECT

    async def build_call(
        self, prompt: str, variant: str | None, transport: Transport
    ) -> UpstreamCall:
        api_key = self._settings.openai_api_key
        if not api_key:
            raise ConfigMissingError("OpenAI configuration missing: OPENAI_API_KEY")

        model = variant or self._settings.openai_model
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": model,
            "messages": [
                self._turn_to_message(Turn(role="system", content=SYSTEM_PROMPT)),
                self._turn_to_message(Turn(role="user", content=prompt)),
            ],
        }

        if transport == Transport.GATEWAY:
            url = f"{gateway.gateway_base_url(self._settings, gateway.OPENAI)}/chat/completions"
            headers.update(gateway.gateway_headers(self._settings))
        else:
            url = OPENAI_CHAT_URL

        return UpstreamCall(
            url=url,
            headers=headers,
            body=body,
            transport=transport,
            strategies=(openai_choices,),
            upstream_model=model,
        )

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        """OpenAI uses the same role names as Turn."""
        return {"role": turn.role, "content": turn.content}
