from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from log_ingest.models.records import Severity, format_instant


LOG = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.CRITICAL: logging.CRITICAL,
    Severity.ERROR: logging.ERROR,
}


def alert_payload(message: str, severity: Severity) -> dict[str, str]:
    return {
        "severity": severity.value,
        "message": message,
        "timestamp": format_instant(datetime.now(timezone.utc)),
    }


class RedisAlertSink:
    """Appends alerts to a Redis stream and mirrors each into an `alert:<id>` hash with a TTL."""

    def __init__(self, redis: aioredis.Redis, stream: str, ttl_sec: int):
        self._redis = redis
        self.stream = stream
        self.ttl_sec = int(ttl_sec)

    async def publish(self, message: str, severity: Severity) -> None:
        payload = alert_payload(message, severity)
        fields = {**payload, "body": json.dumps(payload)}
        entry_id = await self._redis.xadd(self.stream, fields, id="*")
        try:
            key = f"alert:{entry_id}"
            await self._redis.hset(key, mapping={**fields, "id": entry_id})
            await self._redis.expire(key, self.ttl_sec)
        except Exception as exc:  # noqa: BLE001
            LOG.info("failed to store alert hash id=%s err=%s", entry_id, exc)
        LOG.info("alert published id=%s severity=%s", entry_id, severity.value)

    async def aclose(self) -> None:
        await self._redis.aclose()


class LoggingAlertSink:
    """Local development sink: alerts only go to the log."""

    async def publish(self, message: str, severity: Severity) -> None:
        LOG.log(_LOG_LEVELS[severity], "alert severity=%s message=%s", severity.value, message)


async def wait_for_redis(redis: aioredis.Redis, *, attempts: int = 30, max_delay: float = 5.0) -> None:
    delay = 0.5
    for attempt in range(1, attempts + 1):
        try:
            await redis.ping()
            LOG.info("redis reachable")
            return
        except RedisConnectionError as exc:
            LOG.info("redis not available (attempt %d/%d): %s", attempt, attempts, exc)
            if attempt == attempts:
                raise TimeoutError(f"Timeout waiting for Redis: {exc}") from exc
            await asyncio.sleep(delay)
            delay = min(delay * 2, max_delay)
