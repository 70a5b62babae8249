from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from flask import Response
import time
import functools


REQUEST_COUNT = Counter(
    'festival_request_count',
    'Total Flask Request Count',
    ['method', 'endpoint', 'http_status']
)

REQUEST_DURATION = Histogram(
    'festival_request_duration_seconds',
    'Flask Request Duration',
    ['method', 'endpoint']
)


CACHE_HIT_COUNT = Counter(
    'festival_films_cache_hits_total',
    'Merged film list cache hits'
)

CACHE_MISS_COUNT = Counter(
    'festival_films_cache_misses_total',
    'Merged film list cache misses'
)


FILM_MERGE_DURATION = Histogram(
    'festival_film_merge_duration_seconds',
    'Time spent merging film data files'
)

FILTER_QUERY_COUNT = Counter(
    'festival_filter_queries_total',
    'Total film list queries'
)

FILTER_RESULTS_COUNT = Histogram(
    'festival_filter_results',
    'Number of films returned by a list query'
)


FILM_VIEWS = Counter(
    'festival_film_views_total',
    'Total film detail views',
    ['film_id']
)

ADMIN_MUTATION_COUNT = Counter(
    'festival_admin_mutations_total',
    'Admin changes to the data files',
    ['action']
)


def track_request(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        start_time = time.time()

        try:
            response = f(*args, **kwargs)
            if isinstance(response, tuple):
                status_code = response[1]
            else:
                status_code = response.status_code if hasattr(response, 'status_code') else 200

            REQUEST_COUNT.labels(
                method=f.__name__,
                endpoint=f.__name__,
                http_status=status_code
            ).inc()

            duration = time.time() - start_time
            REQUEST_DURATION.labels(
                method=f.__name__,
                endpoint=f.__name__
            ).observe(duration)

            return response

        except Exception:
            REQUEST_COUNT.labels(
                method=f.__name__,
                endpoint=f.__name__,
                http_status=500
            ).inc()
            raise

    return wrapper


def metrics_endpoint():
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
