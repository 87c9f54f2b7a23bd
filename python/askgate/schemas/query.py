"""Pydantic schemas for the query and status endpoints.

Wire format uses camelCase (``modelVariant``); Python attributes are snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from askgate.config import ModelName

MAX_PROMPT_CHARS = 10_000
MAX_MODEL_VARIANT_CHARS = 200
MODEL_VARIANT_PATTERN = r"^[a-z0-9\-/@_.]+$"
DEFAULT_MODEL = ModelName.CLOUDFLARE.value


class QueryRequest(BaseModel):
    """Body of POST /query."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_CHARS)
    model: str = DEFAULT_MODEL
    model_variant: str | None = Field(
        default=None,
        alias="modelVariant",
        max_length=MAX_MODEL_VARIANT_CHARS,
        pattern=MODEL_VARIANT_PATTERN,
    )

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be blank")
        return v

    @field_validator("model", mode="before")
    @classmethod
    def default_model(cls, v: Any) -> Any:
        if v is None or v == "":
            return DEFAULT_MODEL
        return v

    @field_validator("model_variant", mode="before")
    @classmethod
    def blank_variant_is_absent(cls, v: Any) -> Any:
        if v == "":
            return None
        return v


class QueryResponse(BaseModel):
    """Successful answer for POST /query."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    cached: bool
    model: str
    model_variant: str | None = Field(default=None, alias="modelVariant")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class StatusResponse(BaseModel):
    """Health/capability payload for GET /status."""

    ok: bool
    version: str
    timestamp: str
    models: list[str]
