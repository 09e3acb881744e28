"""
Caching helpers for read-heavy lookups (service catalog).
Uses Redis through django-redis when configured.
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

SERVICES_LIST_CACHE_TTL = 300  # 5 minutes
SERVICES_LIST_PREFIX = "services_list"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_cached(prefix, **filters):
    """
    Look up a cached value for a prefix and filter set
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(prefix, **filters)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for {prefix}: {cache_key}")
    return cached_data, cache_key


def set_cached(cache_key, data, ttl=SERVICES_LIST_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached {cache_key}")


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.

    Needs Redis SCAN; other cache backends are cleared entirely since they
    cannot enumerate keys.
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")
    except Exception as e:
        logger.debug(f"Pattern invalidation unavailable ({str(e)}), clearing cache")
        cache.clear()
        return

    try:
        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_services_cache():
    invalidate_cache_pattern(SERVICES_LIST_PREFIX)
