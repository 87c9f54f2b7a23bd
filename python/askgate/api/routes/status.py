"""Status endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from askgate.api.deps import get_app_settings
from askgate.config import APP_VERSION, Settings
from askgate.schemas.query import StatusResponse

router = APIRouter()


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/status")
async def get_status(settings: Settings = Depends(get_app_settings)) -> dict:
    """Liveness plus the models this deployment can currently serve.

    Public. Exposes nothing about gateway coordinates or credentials beyond
    the derived model list.
    """
    return StatusResponse(
        ok=True,
        version=APP_VERSION,
        timestamp=utc_timestamp(),
        models=settings.available_models,
    ).model_dump()
