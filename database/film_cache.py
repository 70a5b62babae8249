"""Merged film list caching with Redis"""
import json
import logging

from database.redis_client import get_redis_client
from metrics import CACHE_HIT_COUNT, CACHE_MISS_COUNT

logger = logging.getLogger(__name__)

FILMS_KEY = 'films:merged'


def get_cached_films():
    """
    Get merged films from cache

    Returns:
        list: merged films, or None on a miss or when Redis is unavailable
    """
    try:
        cached = get_redis_client().get(FILMS_KEY)
    except Exception as e:
        logger.warning(f"Redis get error: {e}")
        return None

    if cached:
        CACHE_HIT_COUNT.inc()
        return json.loads(cached)

    CACHE_MISS_COUNT.inc()
    return None


def set_cached_films(films, ttl=600):
    """
    Cache merged films

    Args:
        films: list of merged film dicts
        ttl: time to live (default 600 sec = 10 min)
    """
    try:
        return get_redis_client().setex(FILMS_KEY, ttl, json.dumps(films))
    except Exception as e:
        logger.warning(f"Redis set error: {e}")
        return False


def clear_film_cache():
    """Clear cached merged films. Returns number of keys removed."""
    try:
        return get_redis_client().delete(FILMS_KEY)
    except Exception as e:
        logger.warning(f"Redis clear error: {e}")
        return 0
