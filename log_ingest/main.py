import logging

from fastapi import FastAPI

from log_ingest.api.v1.api import api_router
from log_ingest.core.config import settings
from log_ingest.core.logging_config import configure_logging, install_request_logging, set_request_logs_enabled

LOG = logging.getLogger(__name__)

# Configure logging before app initialization
configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)

set_request_logs_enabled(settings.REQUEST_LOGS_ENABLED)
install_request_logging(app)


@app.on_event("startup")
async def _log_configuration():
    LOG.info(
        "configuration opensearch=%s alert_sink=%s object_source=%s error_marker=%s apache_marker=%s",
        settings.OPENSEARCH_ENDPOINT,
        settings.ALERT_SINK,
        settings.OBJECT_SOURCE,
        settings.ERROR_LOG_MARKER,
        settings.APACHE_LOG_MARKER,
    )


# Mount versioned API router
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {"status": "ok"}
