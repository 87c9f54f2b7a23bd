"""Provider router: logical model name -> adapter.

- Exactly one adapter per model; no fan-out
- Availability follows the capability flags on Settings
- Unknown models are a caller contract violation and fail fast
- Emits provider.request.started / finished / failed events, all through safe_kv

Error handling:
- GatewayError subclasses raised by adapters propagate unchanged
- Anything else is wrapped as internal_error
"""

import time

import httpx

from askgate.auth.vertex_token import VertexTokenManager
from askgate.config import ModelName, Settings
from askgate.errors import ErrorKind, GatewayError
from askgate.logging import get_logger
from askgate.services.kv import KVStore
from askgate.services.llm.adapter import ProviderAdapter
from askgate.services.llm.cloudflare_adapter import CloudflareAdapter
from askgate.services.llm.gemini_adapter import GeminiAdapter
from askgate.services.llm.openai_adapter import OpenAIAdapter
from askgate.services.llm.vertex_adapter import VertexAIAdapter
from askgate.services.redact import hash_text, safe_kv

logger = get_logger(__name__)


class ProviderRouter:
    """Routes prompts to the adapter registered for a model name."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings, store: KVStore):
        """Initialize router with shared HTTP client, settings, and KV store.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
            settings: Resolved application settings (capability flags).
            store: KV store used by the Vertex AI token cache.
        """
        self._settings = settings
        token_manager = VertexTokenManager(
            client, store, settings.vertex_ai_service_account_json
        )
        self._adapters: dict[str, ProviderAdapter] = {
            ModelName.CLOUDFLARE.value: CloudflareAdapter(client, settings),
            ModelName.GEMINI.value: VertexAIAdapter(client, settings, token_manager),
            ModelName.GOOGLE_AI_STUDIO.value: GeminiAdapter(client, settings),
            ModelName.OPENAI.value: OpenAIAdapter(client, settings),
        }

    @property
    def available_models(self) -> list[str]:
        return self._settings.available_models

    def is_model_available(self, model: str) -> bool:
        return model in self._adapters and model in self._settings.available_models

    def resolve_adapter(self, model: str) -> ProviderAdapter:
        """Get the adapter for a model.

        Raises:
            GatewayError(internal_error): If no adapter is registered for the model.
        """
        adapter = self._adapters.get(model)
        if adapter is None:
            raise GatewayError(ErrorKind.INTERNAL_ERROR, f"Unknown model: {model}", model=model)
        return adapter

    async def call_ai(self, prompt: str, model: str, variant: str | None = None) -> str:
        """Generate an answer with the adapter for ``model``.

        Returns:
            The answer text (may be blank).

        Raises:
            GatewayError: Tagged failure from the adapter, with model attached.
        """
        adapter = self.resolve_adapter(model)
        base = {
            "model": model,
            "model_variant": variant,
            "prompt_chars": len(prompt),
            "prompt_sha256": hash_text(prompt),
        }

        logger.info("provider.request.started", **safe_kv(**base))
        start = time.monotonic()

        try:
            answer = await adapter.generate(prompt, variant)
        except GatewayError as e:
            e.model = e.model or model
            logger.error(
                "provider.request.failed",
                **safe_kv(
                    **base,
                    outcome="error",
                    error_kind=e.kind.value,
                    upstream_status=getattr(e, "upstream_status", None),
                    latency_ms=int((time.monotonic() - start) * 1000),
                ),
            )
            raise
        except Exception as e:
            logger.exception(
                "provider.request.failed",
                **safe_kv(
                    **base,
                    outcome="error",
                    error_kind=ErrorKind.INTERNAL_ERROR.value,
                    latency_ms=int((time.monotonic() - start) * 1000),
                ),
            )
            raise GatewayError(
                ErrorKind.INTERNAL_ERROR,
                f"Unexpected error: {type(e).__name__}",
                model=model,
            ) from e

        logger.info(
            "provider.request.finished",
            **safe_kv(
                **base,
                outcome="success",
                answer_chars=len(answer),
                latency_ms=int((time.monotonic() - start) * 1000),
            ),
        )
        return answer
