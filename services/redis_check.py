import redis
from config import Config
from database.redis_client import get_redis_client


def check_redis():
    try:
        client = get_redis_client()

        client.ping()

        info = client.info()

        # Database size (keys count)
        db_size = client.dbsize()


        uptime_seconds = info.get('uptime_in_seconds', 0)
        uptime_days = uptime_seconds // 86400
        uptime_hours = (uptime_seconds % 86400) // 3600
        uptime_str = f"{uptime_days}d {uptime_hours}h"


        keyspace_hits = info.get('keyspace_hits', 0)
        keyspace_misses = info.get('keyspace_misses', 0)
        total_keyspace_ops = keyspace_hits + keyspace_misses
        hit_rate = round((keyspace_hits / total_keyspace_ops) * 100, 2) if total_keyspace_ops > 0 else 0

        # Key analysis by type
        user_keys = len(client.keys('user:id:*'))
        watchlist_keys = len(client.keys('watchlist:*'))
        films_cached = client.exists('films:merged') == 1

        return {
            'status': 'healthy',
            'service': 'redis',
            'message': 'Successfully connected to Redis',
            'details': {
                'connection': {
                    'host': Config.REDIS_HOST,
                    'port': Config.REDIS_PORT,
                    'connected_clients': info.get('connected_clients', 0)
                },
                'version': info.get('redis_version', 'N/A'),
                'uptime': uptime_str,
                'memory': {
                    'used': info.get('used_memory_human', 'N/A'),
                    'peak': info.get('used_memory_peak_human', 'N/A')
                },
                'data': {
                    'total_keys': db_size,
                    'users': user_keys,
                    'watchlists': watchlist_keys,
                    'films_cached': films_cached
                },
                'performance': {
                    'keyspace_hits': keyspace_hits,
                    'keyspace_misses': keyspace_misses,
                    'hit_rate_percent': hit_rate
                }
            }
        }

    except redis.ConnectionError as e:
        return {
            'status': 'unhealthy',
            'service': 'redis',
            'message': f'Connection error: {str(e)}'
        }
    except Exception as e:
        return {
            'status': 'unhealthy',
            'service': 'redis',
            'message': f'Unexpected error: {str(e)}'
        }
