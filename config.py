import os


class Config:
    HOST = os.getenv('FLASK_HOST', '0.0.0.0')
    PORT = int(os.getenv('FLASK_PORT', '5000'))
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    # Admin routes only answer when this is 'development'
    APP_ENV = os.getenv('APP_ENV', 'production')
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me-in-production')


    DATA_DIR = os.getenv('DATA_DIR', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data'))
    STREAMING_CONFIG_FILE = os.getenv('STREAMING_CONFIG_FILE', 'streaming-config.json')
    STREAMING_COUNTRY = os.getenv('STREAMING_COUNTRY', 'NO')


    REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
    REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
    FILMS_CACHE_TTL = int(os.getenv('FILMS_CACHE_TTL', '600'))


    SESSION_COOKIE = 'auth-token'
    SESSION_MAX_AGE = int(os.getenv('SESSION_MAX_AGE', str(7 * 24 * 60 * 60)))
    # Plain-http cookies in development, secure everywhere else
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', str(APP_ENV != 'development')).lower() == 'true'
    MIN_PASSWORD_LENGTH = 6


    TMDB_API_KEY = os.getenv('TMDB_API_KEY', '')
    TMDB_TIMEOUT = int(os.getenv('TMDB_TIMEOUT', '15'))
    RATE_LIMIT_REQUESTS_PER_MINUTE = int(os.getenv('RATE_LIMIT_REQUESTS_PER_MINUTE', '10'))

    @classmethod
    def is_development(cls):
        return cls.APP_ENV == 'development'
