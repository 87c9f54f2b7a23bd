"""FastAPI dependencies for route handlers.

Shared resources are created once in the app lifespan and read from
``app.state`` here.
"""

from fastapi import Request

from askgate.config import Settings
from askgate.services.answer_cache import AnswerCache
from askgate.services.llm import ProviderRouter

__all__ = ["get_answer_cache", "get_app_settings", "get_provider_router"]


def get_app_settings(request: Request) -> Settings:
    """Get the settings the app was created with."""
    return request.app.state.settings


def get_provider_router(request: Request) -> ProviderRouter:
    """Get the shared provider router.

    The router wraps the shared httpx.AsyncClient created at startup.
    """
    return request.app.state.provider_router


def get_answer_cache(request: Request) -> AnswerCache:
    return request.app.state.answer_cache
