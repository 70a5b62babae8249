from .redis_check import check_redis
from .data_check import check_data

__all__ = [
    'check_redis',
    'check_data'
]
