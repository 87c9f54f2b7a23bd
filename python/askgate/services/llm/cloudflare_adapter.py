"""Cloudflare Workers AI adapter.

Transports:
- GATEWAY: POST {gateway}/workers-ai/{model}
- GATEWAY_COMPAT: POST {gateway}/compat/chat/completions, used when the
  variant names another gateway provider (e.g. "google-ai-studio/gemini-flash-latest")
- DIRECT: POST https://api.cloudflare.com/client/v4/accounts/{account}/ai/run/{model}

Auth: Authorization: Bearer <CLOUDFLARE_API_TOKEN>

Request body:
{
  "messages": [
    {"role": "system", "content": "You are a helpful AI assistant."},
    {"role": "user", "content": "<prompt>"}
  ]
}

Response shapes seen across transports:
- {"result": {"response": "..."}}   (REST API, gateway)
- {"response": "..."}               (native binding shape, some gateway versions)
- {"choices": [{"message": {"content": "..."}}]}   (compat endpoint)
"""

from askgate.errors import ConfigMissingError
from askgate.services.llm import gateway
from askgate.services.llm.adapter import SYSTEM_PROMPT, ProviderAdapter
from askgate.services.llm.extraction import bare_response, openai_choices, result_response
from askgate.services.llm.types import Transport, Turn, UpstreamCall

CLOUDFLARE_API_BASE_URL = "https://api.cloudflare.com/client/v4/accounts"
WORKERS_AI_PREFIX = f"{gateway.WORKERS_AI}/"

NATIVE_STRATEGIES = (result_response, bare_response, openai_choices)
COMPAT_STRATEGIES = (openai_choices, result_response)


def is_compat_variant(variant: str | None) -> bool:
    """A variant like "openai/gpt-4o" targets another provider via the compat endpoint.

    Workers AI model ids ("@cf/...") and "workers-ai/..." variants stay native.
    """
    if not variant:
        return False
    if variant.startswith("@") or variant.startswith(WORKERS_AI_PREFIX):
        return False
    return "/" in variant


def resolve_workers_model(variant: str | None, default: str) -> str:
    if not variant:
        return default
    if variant.startswith(WORKERS_AI_PREFIX):
        return variant[len(WORKERS_AI_PREFIX) :]
    return variant


class CloudflareAdapter(ProviderAdapter):
    """Workers AI via AI Gateway when configured, else the direct REST API."""

    provider_label = "Cloudflare AI"

    def select_transport(self, variant: str | None) -> Transport:
        if is_compat_variant(variant):
            return Transport.GATEWAY_COMPAT
        if self._settings.has_gateway:
            return Transport.GATEWAY
        return Transport.DIRECT

    async def build_call(
        self, prompt: str, variant: str | None, transport: Transport
    ) -> UpstreamCall:
        token = self._settings.cloudflare_api_token
        if not token:
            raise ConfigMissingError("Cloudflare AI configuration missing: CLOUDFLARE_API_TOKEN")

        messages = [
            self._turn_to_message(Turn(role="system", content=SYSTEM_PROMPT)),
            self._turn_to_message(Turn(role="user", content=prompt)),
        ]
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        if transport == Transport.GATEWAY_COMPAT:
            if not self._settings.has_gateway:
                raise ConfigMissingError(
                    f"Model variant '{variant}' requires AI Gateway configuration"
                )
            return UpstreamCall(
                url=f"{gateway.gateway_base_url(self._settings, gateway.COMPAT)}/chat/completions",
                headers={**headers, **gateway.gateway_headers(self._settings)},
                body={"model": variant, "messages": messages},
                transport=transport,
                strategies=COMPAT_STRATEGIES,
                upstream_model=variant,
            )

        model = resolve_workers_model(variant, self._settings.cloudflare_ai_model)

        if transport == Transport.GATEWAY:
            base = gateway.gateway_base_url(self._settings, gateway.WORKERS_AI)
            return UpstreamCall(
                url=f"{base}/{model}",
                headers={**headers, **gateway.gateway_headers(self._settings)},
                body={"messages": messages},
                transport=transport,
                strategies=NATIVE_STRATEGIES,
                upstream_model=model,
            )

        account_id = self._settings.account_id
        if not account_id:
            raise ConfigMissingError("Cloudflare AI configuration missing: ACCOUNT_ID")
        return UpstreamCall(
            url=f"{CLOUDFLARE_API_BASE_URL}/{account_id}/ai/run/{model}",
            headers=headers,
            body={"messages": messages},
            transport=transport,
            strategies=NATIVE_STRATEGIES,
            upstream_model=model,
        )

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        return {"role": turn.role, "content": turn.content}
