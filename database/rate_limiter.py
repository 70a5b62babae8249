import logging

from database.redis_client import get_redis_client

logger = logging.getLogger(__name__)


def check_rate_limit(action: str, identity: str, max_requests: int, window_seconds: int = 60) -> dict:
    """Fixed-window counter per action and caller"""
    key = f"rate_limit:{action}:{identity}"

    try:
        r = get_redis_client()
        count = r.incr(key)
        if count == 1:
            r.expire(key, window_seconds)

        if count > max_requests:
            ttl = r.ttl(key)
            retry_after = ttl if ttl and ttl > 0 else window_seconds
            return {
                'allowed': False,
                'retry_after': retry_after,
                'message': f"You've reached the limit of {max_requests} requests per minute. Try again in {retry_after} seconds."
            }

        return {'allowed': True, 'retry_after': 0, 'message': 'ok'}

    except Exception as e:
        logger.error(f"Rate limit check failed: {e}")
        return {'allowed': True, 'retry_after': 0, 'message': 'ok'}
