import json
import logging

import redis

from solar_logger.config import CACHE_ENABLED, CACHE_TTL_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

RECORDS_KEY = "records:all"
STATS_KEY = "records:stats"
CHART_KEY_PREFIX = "records:charts:"

redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)


def set_cache(key: str, value, ex: int = CACHE_TTL_SECONDS):
    if not CACHE_ENABLED:
        return
    try:
        redis_client.set(key, json.dumps(value), ex=ex)
    except redis.RedisError as e:
        logger.warning(f"Redis caching error for {key}: {e}")


def get_cache(key: str):
    if not CACHE_ENABLED:
        return None
    try:
        v = redis_client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Redis read error for {key}: {e}")
        return None
    if v is None:
        return None
    try:
        return json.loads(v)
    except ValueError:
        return v


def invalidate_cache(*keys: str):
    if not CACHE_ENABLED:
        return
    try:
        if keys:
            redis_client.delete(*keys)
        chart_keys = list(redis_client.scan_iter(match=f"{CHART_KEY_PREFIX}*"))
        if chart_keys:
            redis_client.delete(*chart_keys)
    except redis.RedisError as e:
        logger.warning(f"Redis invalidation error: {e}")


def invalidate_records_cache():
    """Drop every cached view derived from the record collection."""
    invalidate_cache(RECORDS_KEY, STATS_KEY)
