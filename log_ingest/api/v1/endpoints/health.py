from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from log_ingest.api.deps import get_app_settings
from log_ingest.core.config import Settings
from log_ingest.models.records import LogFamily
from log_ingest.services.dispatch import index_for

router = APIRouter()


@router.get("/", tags=["health"])
async def health(settings: Settings = Depends(get_app_settings)) -> dict[str, object]:
    """Liveness check; also reports where each log family is indexed."""
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "indices": {family.value: index_for(family, settings) for family in LogFamily},
        "alert_sink": settings.ALERT_SINK,
    }
