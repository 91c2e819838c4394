"""Redis implementation of the QuotaStore interface."""

import redis
from voice_common import QuotaStoreError, setup_logging
from voice_common.infrastructure import QuotaStore

logger = setup_logging()

# Counters outlive their month long enough for late corrections to land.
COUNTER_TTL_SECONDS = 40 * 24 * 3600


def tier_key(tenant_id: str) -> str:
    return f"voice:tier:{tenant_id}"


def usage_key(service: str, tenant_id: str, user_id: str, period: str) -> str:
    return f"voice:usage:{service}:{tenant_id}:{user_id}:{period}"


class RedisQuotaStore(QuotaStore):
    """Quota counters and tenant tiers kept in Redis."""

    def __init__(self, client: redis.Redis):
        self._client = client

    def get_tier(self, tenant_id: str) -> str | None:
        key = tier_key(tenant_id)
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            logger.exception("Redis get failed", extra={"key": key})
            raise QuotaStoreError(key, "get", cause=e) from e
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value.strip().lower() or None

    def get_usage(self, service: str, tenant_id: str, user_id: str, period: str) -> float:
        key = usage_key(service, tenant_id, user_id, period)
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            logger.exception("Redis get failed", extra={"key": key})
            raise QuotaStoreError(key, "get", cause=e) from e
        return float(value) if value is not None else 0.0

    def increment(
        self, service: str, tenant_id: str, user_id: str, period: str, units: float
    ) -> float:
        key = usage_key(service, tenant_id, user_id, period)
        try:
            pipeline = self._client.pipeline()
            pipeline.incrbyfloat(key, units)
            pipeline.expire(key, COUNTER_TTL_SECONDS)
            total, _ = pipeline.execute()
        except redis.RedisError as e:
            logger.exception("Redis increment failed", extra={"key": key})
            raise QuotaStoreError(key, "increment", cause=e) from e
        logger.info("Usage counter incremented", extra={"key": key, "units": units})
        return float(total)
