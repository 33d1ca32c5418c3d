"""
Caching utilities for frequently read, rarely written data
Uses Redis (django-redis) in production, any Django cache backend otherwise
"""
from django.conf import settings
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
ACTIVE_PROMOTIONS_CACHE_TTL = 300  # 5 minutes

ACTIVE_PROMOTIONS_PREFIX = "active_promotions"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def uses_redis():
    return settings.CACHES['default']['BACKEND'].startswith('django_redis')


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support; other backends are skipped
    """
    if not uses_redis():
        return 0
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

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
        return len(keys)
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")
        return 0


def active_promotions_cache_key(day):
    """Active promotions depend on the calendar day, so the day is part of the key"""
    return make_cache_key(ACTIVE_PROMOTIONS_PREFIX, day.isoformat())


def get_cached_active_promotions(day):
    """
    Get cached active promotions payload for a day
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = active_promotions_cache_key(day)
    return cache.get(cache_key), cache_key


def cache_active_promotions(cache_key, data, ttl=ACTIVE_PROMOTIONS_CACHE_TTL):
    """Cache active promotions payload"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached active promotions: {cache_key}")


def invalidate_active_promotions_cache(day):
    """Drop today's key directly, then sweep older day keys where the backend allows it"""
    cache.delete(active_promotions_cache_key(day))
    invalidate_cache_pattern(ACTIVE_PROMOTIONS_PREFIX)
    logger.info("Invalidated active promotions cache")
