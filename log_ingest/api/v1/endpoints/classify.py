from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from log_ingest.api.deps import get_app_settings, get_critical_patterns
from log_ingest.core.config import Settings
from log_ingest.models.records import ClassificationRequest, Parsed
from log_ingest.parsers.registry import classify
from log_ingest.schemas.ingest import ClassifyRequest, ClassifyResponse, DispatchResponse
from log_ingest.services.critical_rules import evaluate_alert
from log_ingest.services.dispatch import select_family


router = APIRouter()


@router.post("/", response_model=ClassifyResponse)
async def classify_line(
    payload: ClassifyRequest,
    patterns: List[str] = Depends(get_critical_patterns),
) -> ClassifyResponse:
    """Classify one line without indexing it; rejected lines return 422 with the reason."""
    result = classify(ClassificationRequest(raw_line=payload.line, family=payload.family))
    if not isinstance(result, Parsed):
        raise HTTPException(status_code=422, detail=result.reason)
    decision = evaluate_alert(result.record, patterns)
    return ClassifyResponse(
        family=payload.family,
        document=result.record.to_document(),
        alert=decision.should_alert,
        severity=decision.severity.value if decision.should_alert else None,
        alert_message=decision.reason if decision.should_alert else None,
    )


@router.get("/dispatch", response_model=DispatchResponse)
async def dispatch(
    path: str = Query(..., min_length=1),
    settings: Settings = Depends(get_app_settings),
) -> DispatchResponse:
    target = select_family(path, settings)
    return DispatchResponse(path=path, family=target.family, index_name=target.index_name)
