"""Access policy and upstream credential handling.

This module provides:
- Origin allowlist and API key checks for /query
- OAuth access tokens for Vertex AI minted from a service account
"""

from askgate.auth.guard import is_origin_allowed, is_same_origin, verify_api_key
from askgate.auth.vertex_token import VertexTokenManager

__all__ = [
    "VertexTokenManager",
    "is_origin_allowed",
    "is_same_origin",
    "verify_api_key",
]
