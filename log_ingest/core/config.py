from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    PROJECT_NAME: str = "Log ingest"
    API_PREFIX: str = "/api/v1"

    LOG_LEVEL: str = "INFO"
    REQUEST_LOGS_ENABLED: bool = True

    # Search index (OpenSearch REST API)
    OPENSEARCH_ENDPOINT: str = "http://localhost:9200"
    OPENSEARCH_USERNAME: str | None = None
    OPENSEARCH_PASSWORD: str | None = None
    OPENSEARCH_VERIFY_SSL: bool = True
    INDEX_TIMEOUT_SEC: float = 10.0

    ERROR_INDEX: str = "error-logs"
    ACCESS_INDEX: str = "access-logs"
    APACHE_ACCESS_INDEX: str = "apache-access-logs"

    # Dispatch markers matched against the object key
    ERROR_LOG_MARKER: str = "/error/"
    APACHE_LOG_MARKER: str = "apachestyle"

    # Critical patterns; JSON list in the environment, e.g. ERROR_PATTERNS='["critical", "fatal"]'
    ERROR_PATTERNS: List[str] = []
    CRITICAL_PATTERNS_FILE: str | None = None  # YAML file used when ERROR_PATTERNS is empty

    # Alerts go to a Redis stream, mirrored into hashes with a TTL
    ALERT_SINK: str = "redis"  # "redis" or "log"
    REDIS_URL: str = "redis://localhost:6379/0"
    ALERTS_STREAM: str = "log_alerts"
    ALERTS_TTL_SEC: int = 86400

    # Object storage
    OBJECT_SOURCE: str = "local"  # "local" or "http"
    OBJECT_STORE_ROOT: str = "data/buckets"
    OBJECT_STORE_ENDPOINT: str = "http://localhost:4566"

    # Dependency readiness checks
    SERVICE_WAIT_ATTEMPTS: int = 30
    SERVICE_WAIT_INTERVAL_SEC: float = 1.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def opensearch_auth(self) -> tuple[str, str] | None:
        """Basic auth pair when both username and password are configured."""
        if self.OPENSEARCH_USERNAME and self.OPENSEARCH_PASSWORD:
            return (self.OPENSEARCH_USERNAME, self.OPENSEARCH_PASSWORD)
        return None


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return cached settings object to avoid re-parsing env vars."""
    return Settings()


# Export a module-level settings instance for easy imports
settings = get_settings()
