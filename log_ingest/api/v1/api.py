from fastapi import APIRouter

from log_ingest.api.v1.endpoints import classify
from log_ingest.api.v1.endpoints import events
from log_ingest.api.v1.endpoints import health

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(classify.router, prefix="/classify", tags=["classify"])
