from functools import wraps
import json
import logging

from pydantic import BaseModel
from redis import Redis
from redis.exceptions import RedisError

from core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

redis_client = Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    decode_responses=True,
    socket_connect_timeout=1,
)

# Per-request objects that must not be part of a cache key
UNCACHED_KWARGS = {"session", "current_user", "service", "request"}


def _cache_key(func, kwargs: dict) -> str:
    parts = []
    for name in sorted(kwargs):
        if name in UNCACHED_KWARGS:
            continue
        value = kwargs[name]
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        parts.append(f"{name}={value}")
    return f"{func.__module__}.{func.__name__}:{'&'.join(parts)}"


def _serialize(result) -> str:
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    return json.dumps(result, default=str)


def cache_response(expire_time=300):
    """Cache an endpoint's JSON result in Redis, calling through when Redis is unavailable"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.CACHE_ENABLED:
                return await func(*args, **kwargs)

            cache_key = _cache_key(func, kwargs)
            try:
                cached_result = redis_client.get(cache_key)
                if cached_result:
                    return json.loads(cached_result)
            except RedisError as e:
                logger.error(f"Cache read error in {func.__name__}: {str(e)}")

            result = await func(*args, **kwargs)

            try:
                redis_client.setex(cache_key, expire_time, _serialize(result))
            except RedisError as e:
                logger.error(f"Cache write error in {func.__name__}: {str(e)}")
            return result
        return wrapper
    return decorator
