"""AI Gateway URL construction.

Base URL per provider:
    {AI_GATEWAY_URL}/{ACCOUNT_ID}/{AI_GATEWAY_ID}/{provider}

When AI_GATEWAY_SKIP_PATH_CONSTRUCTION is true the configured URL already
encodes the account and gateway (e.g. a custom domain), so only the
provider segment is appended:
    {AI_GATEWAY_URL}/{provider}

An authenticated gateway additionally expects
``cf-aig-authorization: Bearer <AI_GATEWAY_TOKEN>``.
"""

from askgate.config import Settings
from askgate.errors import ConfigMissingError

GATEWAY_AUTH_HEADER = "cf-aig-authorization"

# Gateway provider path segments
WORKERS_AI = "workers-ai"
GOOGLE_AI_STUDIO = "google-ai-studio"
OPENAI = "openai"
COMPAT = "compat"


def gateway_base_url(settings: Settings, provider: str) -> str:
    """Return the gateway base URL for a provider segment.

    Raises:
        ConfigMissingError: If the gateway coordinates are incomplete.
    """
    if not settings.has_gateway:
        raise ConfigMissingError("AI Gateway configuration missing")

    root = settings.ai_gateway_url.rstrip("/")  # type: ignore[union-attr]
    if settings.ai_gateway_skip_path_construction:
        return f"{root}/{provider}"
    return f"{root}/{settings.account_id}/{settings.ai_gateway_id}/{provider}"


def gateway_headers(settings: Settings) -> dict[str, str]:
    """Headers every gateway call carries in addition to provider auth."""
    if settings.ai_gateway_token:
        return {GATEWAY_AUTH_HEADER: f"Bearer {settings.ai_gateway_token}"}
    return {}
