"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from askgate.api.routes.query import router as query_router
from askgate.api.routes.status import router as status_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(status_router, tags=["status"])
    api_router.include_router(query_router, tags=["query"])
    return api_router


__all__ = ["create_api_router"]
