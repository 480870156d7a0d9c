from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException

from log_ingest.api.deps import get_app_settings, get_collaborators, get_critical_patterns
from log_ingest.collaborators.base import ObjectNotFoundError
from log_ingest.core.config import Settings
from log_ingest.handler import Collaborators, InvalidEventError, handle_event
from log_ingest.schemas.ingest import ProcessResponse


router = APIRouter()


@router.post("/", response_model=ProcessResponse)
async def process_event(
    event: Dict[str, Any] = Body(...),
    collaborators: Collaborators = Depends(get_collaborators),
    settings: Settings = Depends(get_app_settings),
    patterns: List[str] = Depends(get_critical_patterns),
) -> Dict[str, Any]:
    """Process the object named by a storage notification event."""
    try:
        return await handle_event(event, collaborators, settings, patterns)
    except InvalidEventError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
