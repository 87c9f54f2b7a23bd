"""Google Vertex AI adapter.

Endpoint (always direct; there is no gateway route for Vertex AI here):
POST https://{location}-aiplatform.googleapis.com/v1/projects/{project}/locations/{location}/publishers/google/models/{model}:generateContent

Auth: Authorization: Bearer <OAuth2 access token from VertexTokenManager>

Request body:
{
  "contents": [{"role": "user", "parts": [{"text": "..."}]}]
}

Response: candidates[0].content.parts[].text, non-empty parts joined with a
blank line.

Because the call is always direct, the gateway-first policy rejects it
before any token exchange happens.
"""

import httpx

from askgate.auth.vertex_token import VertexTokenManager
from askgate.config import Settings
from askgate.errors import ConfigMissingError
from askgate.services.llm.adapter import ProviderAdapter
from askgate.services.llm.extraction import gemini_candidates
from askgate.services.llm.gemini_adapter import build_contents
from askgate.services.llm.types import Transport, UpstreamCall


def vertex_endpoint(project_id: str, location: str, model: str) -> str:
    return (
        f"https://{location}-aiplatform.googleapis.com/v1/projects/{project_id}"
        f"/locations/{location}/publishers/google/models/{model}:generateContent"
    )


class VertexAIAdapter(ProviderAdapter):
    """Vertex AI generateContent adapter using service-account OAuth."""

    provider_label = "Vertex AI"

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        token_manager: VertexTokenManager,
    ):
        super().__init__(client, settings)
        self._token_manager = token_manager

    def select_transport(self, variant: str | None) -> Transport:
        return Transport.DIRECT

    async def build_call(
        self, prompt: str, variant: str | None, transport: Transport
    ) -> UpstreamCall:
        settings = self._settings
        missing = [
            name
            for name, value in (
                ("GCP_PROJECT_ID", settings.gcp_project_id),
                ("VERTEX_AI_LOCATION", settings.vertex_ai_location),
                ("VERTEX_AI_SERVICE_ACCOUNT_JSON", settings.vertex_ai_service_account_json),
            )
            if not value
        ]
        if missing:
            raise ConfigMissingError(
                f"Vertex AI configuration missing: {', '.join(missing)}",
                details={"missing_settings": missing},
            )

        token = await self._token_manager.get_token()
        model = variant or settings.vertex_ai_model

        return UpstreamCall(
            url=vertex_endpoint(settings.gcp_project_id, settings.vertex_ai_location, model),  # type: ignore[arg-type]
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            body={"contents": build_contents(prompt)},
            transport=transport,
            strategies=(gemini_candidates,),
            upstream_model=model,
        )
