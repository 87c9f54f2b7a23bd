"""Application settings loaded from environment variables.

Environment Configuration:
    ASKGATE_ENV: Deployment environment (local | test | staging | prod)
    REDIS_URL: Redis connection string for the answer/token cache (optional;
        an in-process store is used when unset)
    STATIC_ASSETS_DIR: Directory of front-end assets served on unmatched paths

Access policy:
    ALLOWED_ORIGINS: Comma-separated origin allowlist for /query
    API_KEY: Shared key required from cross-origin callers of /query

Providers (presence of the required fields enables the model):
    cloudflare:        CLOUDFLARE_API_TOKEN + (ACCOUNT_ID or a configured gateway)
    gemini:            GCP_PROJECT_ID + VERTEX_AI_LOCATION + VERTEX_AI_SERVICE_ACCOUNT_JSON
    google-ai-studio:  GEMINI_API_KEY
    openai:            OPENAI_API_KEY

AI Gateway:
    AI_GATEWAY_URL, AI_GATEWAY_ID, AI_GATEWAY_SKIP_PATH_CONSTRUCTION, AI_GATEWAY_TOKEN
    GATEWAY_FIRST / ALLOW_DIRECT_PROVIDER: refuse direct provider calls

Missing provider settings never fail startup; they only narrow the set of
available models.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

APP_VERSION = "2.0.0"


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class ModelName(str, Enum):
    """Logical model names accepted by POST /query."""

    CLOUDFLARE = "cloudflare"
    GEMINI = "gemini"
    GOOGLE_AI_STUDIO = "google-ai-studio"
    OPENAI = "openai"


class Settings(BaseSettings):
    """Application configuration.

    Resolved once at startup. Capability flags (``has_*``) are derived
    purely from which optional fields are present.
    """

    askgate_env: Environment = Field(default=Environment.LOCAL, alias="ASKGATE_ENV")

    # Collaborators
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    static_assets_dir: str | None = Field(default=None, alias="STATIC_ASSETS_DIR")

    # Access policy
    allowed_origins: str | None = Field(default=None, alias="ALLOWED_ORIGINS")
    api_key: str | None = Field(default=None, alias="API_KEY")

    # Request limits
    max_body_bytes: int = Field(default=128 * 1024, alias="MAX_BODY_BYTES")
    provider_timeout_s: float = Field(default=60.0, alias="PROVIDER_TIMEOUT_S")

    # Cloudflare Workers AI
    cloudflare_api_token: str | None = Field(default=None, alias="CLOUDFLARE_API_TOKEN")
    account_id: str | None = Field(default=None, alias="ACCOUNT_ID")
    cloudflare_ai_model: str = Field(
        default="@cf/meta/llama-2-7b-chat-fp16", alias="CLOUDFLARE_AI_MODEL"
    )

    # AI Gateway
    ai_gateway_url: str | None = Field(default=None, alias="AI_GATEWAY_URL")
    ai_gateway_id: str | None = Field(default=None, alias="AI_GATEWAY_ID")
    ai_gateway_skip_path_construction: bool = Field(
        default=False, alias="AI_GATEWAY_SKIP_PATH_CONSTRUCTION"
    )
    ai_gateway_token: str | None = Field(default=None, alias="AI_GATEWAY_TOKEN")

    # Gateway-first policy
    gateway_first: bool = Field(default=False, alias="GATEWAY_FIRST")
    allow_direct_provider: bool = Field(default=True, alias="ALLOW_DIRECT_PROVIDER")

    # Google Vertex AI
    gcp_project_id: str | None = Field(default=None, alias="GCP_PROJECT_ID")
    vertex_ai_location: str | None = Field(default=None, alias="VERTEX_AI_LOCATION")
    vertex_ai_model: str = Field(default="gemini-1.5-flash", alias="VERTEX_AI_MODEL")
    vertex_ai_service_account_json: str | None = Field(
        default=None, alias="VERTEX_AI_SERVICE_ACCOUNT_JSON"
    )

    # Google AI Studio
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")

    # OpenAI
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("max_body_bytes")
    @classmethod
    def validate_max_body_bytes(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_BODY_BYTES must be >= 1")
        return v

    @property
    def allowed_origin_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        if self.allowed_origins:
            return [o.strip().rstrip("/") for o in self.allowed_origins.split(",") if o.strip()]
        return []

    @property
    def has_gateway(self) -> bool:
        """Whether enough gateway coordinates are present to build a gateway URL."""
        if not self.ai_gateway_url:
            return False
        if self.ai_gateway_skip_path_construction:
            return True
        return bool(self.account_id and self.ai_gateway_id)

    @property
    def has_cloudflare(self) -> bool:
        return bool(self.cloudflare_api_token) and (bool(self.account_id) or self.has_gateway)

    @property
    def has_vertex_ai(self) -> bool:
        return bool(
            self.gcp_project_id
            and self.vertex_ai_location
            and self.vertex_ai_service_account_json
        )

    @property
    def has_google_ai_studio(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_openai(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def direct_provider_blocked(self) -> bool:
        """Whether the gateway-first policy forbids direct provider calls."""
        return self.gateway_first and not self.allow_direct_provider

    @property
    def available_models(self) -> list[str]:
        """Model names whose required configuration is present, in a stable order."""
        flags = {
            ModelName.CLOUDFLARE: self.has_cloudflare,
            ModelName.GEMINI: self.has_vertex_ai,
            ModelName.GOOGLE_AI_STUDIO: self.has_google_ai_studio,
            ModelName.OPENAI: self.has_openai,
        }
        return [model.value for model, enabled in flags.items() if enabled]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
