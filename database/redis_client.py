"""Shared Redis connection"""
import redis
from config import Config

_client = None


def get_redis_client():
    """Get Redis client (created on first use)"""
    global _client
    if _client is None:
        _client = redis.Redis(
            host=Config.REDIS_HOST,
            port=Config.REDIS_PORT,
            db=0,
            decode_responses=True,
            socket_timeout=5
        )
    return _client
