"""TMDB movie details lookup"""
import logging

import requests

from config import Config

logger = logging.getLogger(__name__)

TMDB_BASE_URL = 'https://api.themoviedb.org/3'
POSTER_BASE = 'https://image.tmdb.org/t/p/w500'
BACKDROP_BASE = 'https://image.tmdb.org/t/p/w1280'
MAX_CAST = 10

SESSION = requests.Session()


class TMDBError(Exception):
    pass


class TMDBNotConfigured(TMDBError):
    pass


class TMDBNotFound(TMDBError):
    pass


def _get(path, **params):
    if not Config.TMDB_API_KEY:
        raise TMDBNotConfigured('TMDB API key not configured')

    params['api_key'] = Config.TMDB_API_KEY
    try:
        response = SESSION.get(f"{TMDB_BASE_URL}{path}", params=params, timeout=Config.TMDB_TIMEOUT)
    except requests.RequestException as e:
        raise TMDBError(f"TMDB request failed: {e}") from e

    if response.status_code == 404:
        raise TMDBNotFound(path)
    if not response.ok:
        raise TMDBError(f"TMDB API error {response.status_code}: {response.reason}")
    return response.json()


def format_movie_data(movie, credits):
    directors = [p['name'] for p in credits.get('crew', []) if p.get('job') == 'Director']
    cast = [p['name'] for p in sorted(credits.get('cast', []), key=lambda p: p.get('order', 0))][:MAX_CAST]

    return {
        'tmdb_id': movie['id'],
        'title': movie.get('title'),
        'original_title': movie.get('original_title'),
        'synopsis': movie.get('overview'),
        'release_date': movie.get('release_date'),
        'runtime': movie.get('runtime'),
        'rating': movie.get('vote_average'),
        'vote_count': movie.get('vote_count'),
        'genres': movie.get('genres', []),
        'poster_url': f"{POSTER_BASE}{movie['poster_path']}" if movie.get('poster_path') else None,
        'backdrop_url': f"{BACKDROP_BASE}{movie['backdrop_path']}" if movie.get('backdrop_path') else None,
        'imdb_id': movie.get('imdb_id'),
        'directors': directors,
        'cast': cast,
        'production_countries': movie.get('production_countries', []),
        'production_companies': movie.get('production_companies', [])
    }


def fetch_movie(tmdb_id):
    movie = _get(f"/movie/{tmdb_id}", language='en-US')
    try:
        credits = _get(f"/movie/{tmdb_id}/credits")
    except TMDBError as e:
        logger.warning(f"No credits for TMDB movie {tmdb_id}: {e}")
        credits = {'cast': [], 'crew': []}
    return format_movie_data(movie, credits)


def search_movie(title, year=None):
    """Fetch full details for the best (first) search hit"""
    params = {'query': title, 'language': 'en-US'}
    if year:
        params['year'] = year

    results = _get('/search/movie', **params).get('results') or []
    if not results:
        raise TMDBNotFound(title)

    return fetch_movie(results[0]['id'])
