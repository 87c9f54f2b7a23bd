"""Pydantic schemas for request/response validation."""

from askgate.schemas.query import (
    MAX_PROMPT_CHARS,
    QueryRequest,
    QueryResponse,
    StatusResponse,
)

__all__ = [
    "MAX_PROMPT_CHARS",
    "QueryRequest",
    "QueryResponse",
    "StatusResponse",
]
