"""Merge master films with festival appearances, awards and streaming data"""
import json
import logging
import os
import re
import time

from config import Config
from database import film_store
from database.film_cache import get_cached_films, set_cached_films, clear_film_cache
from database.streaming_config import get_streaming_config, has_enabled_providers
from metrics import FILM_MERGE_DURATION

logger = logging.getLogger(__name__)

MERGED_FILE = 'merged-films.json'
TMDB_POSTER_BASE = 'https://image.tmdb.org/t/p/w500'
MAX_CAST = 6


def create_film_key(title, year):
    """'No Other Land', 2024 -> 'no-other-land-2024'"""
    return f"{re.sub(r'[^a-z0-9]+', '-', title.lower())}-{year}"


def normalize_title(title):
    """Title form used to look up awards"""
    normalized = re.sub(r'\s*\([^)]+\)\s*', '', title).strip()
    normalized = re.sub(r'[^\w\s]', ' ', normalized.lower())
    return re.sub(r'\s+', ' ', normalized).strip()


def _text_or_none(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


def _year(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _runtime(value):
    if value in (None, ''):
        return None
    return str(value)


def _cast(value):
    if not isinstance(value, list):
        return None
    names = [c.get('name') if isinstance(c, dict) else c for c in value]
    return [name for name in names if name][:MAX_CAST]


def _poster_url(film, streaming_info):
    if film.get('poster_url_tmdb'):
        return film['poster_url_tmdb']
    if film.get('poster_path'):
        return f"{TMDB_POSTER_BASE}{film['poster_path']}"
    return streaming_info.get('poster_url') or None


def _appearance_awarded(appearance, awards):
    return any(
        str(award.get('festival', '')).lower() == appearance['name'].lower()
        and str(award.get('year')) == appearance['year']
        for award in awards
    )


def merge_film(film_id, film, appearances, streaming_info, award_info, streaming_config):
    """Build the merged record for one master film"""
    title = film.get('title') or ''
    awards = award_info.get('awards', [])
    streaming = streaming_info.get('streaming') or []
    rent = streaming_info.get('rent') or []
    buy = streaming_info.get('buy') or []

    return {
        'id': film_id,
        'film_key': film.get('filmKey') or create_film_key(title, film.get('year')),
        'title': title,
        'original_title': film.get('original_title'),
        'year': _year(film.get('year')),
        'country': film.get('country'),
        'director': film.get('director'),

        'synopsis': film.get('synopsis') or film.get('overview') or None,
        'genres': film.get('genres') if isinstance(film.get('genres'), list) else None,
        'runtime': _runtime(film.get('runtime')),
        'cast': _cast(film.get('cast')),
        'tmdb_rating': film.get('tmdb_rating'),
        'tmdb_id': film.get('tmdb_id'),

        'mubi_link': _text_or_none(film.get('mubiLink')),
        'justwatch_link': streaming_info.get('justwatch_url') or None,
        'poster_url': _poster_url(film, streaming_info),

        'awarded': bool(award_info.get('awarded')),
        'awards': awards,

        'has_streaming': has_enabled_providers(streaming, streaming_config),
        'has_rent': has_enabled_providers(rent, streaming_config),
        'has_buy': has_enabled_providers(buy, streaming_config),
        'justwatch_found': bool(streaming_info.get('found')),
        'streaming': streaming,
        'rent': rent,
        'buy': buy,

        'festivals': [
            {**appearance, 'awarded': _appearance_awarded(appearance, awards)}
            for appearance in appearances
        ]
    }


@FILM_MERGE_DURATION.time()
def merge_all_films():
    master = film_store.load_master_films()
    master_films = master.get('films', {})
    appearances = film_store.load_festival_appearances()
    streaming_films = film_store.load_streaming_data()['films']
    awards = film_store.load_awards()
    streaming_config = get_streaming_config()

    dangling = sorted(set(appearances) - set(master_films))
    if dangling:
        logger.warning(f"Festival files reference {len(dangling)} unknown film ids: {', '.join(dangling[:10])}")

    films = []
    for film_id in sorted(master_films):
        film = master_films[film_id]
        award_key = f"{normalize_title(film.get('title') or '')}-{film.get('year')}"
        films.append(merge_film(
            film_id,
            film,
            appearances.get(film_id, []),
            streaming_films.get(film_id) or {},
            awards.get(award_key, {}),
            streaming_config
        ))

    return films


def merged_path():
    return os.path.join(Config.DATA_DIR, MERGED_FILE)


def write_merged_films(films=None):
    """Write the pre-merged films file. Returns the film list written."""
    if films is None:
        films = merge_all_films()

    film_store.write_json(merged_path(), {
        'generated_at': film_store.now_iso(),
        'total_films': len(films),
        'films': films
    })
    return films


def load_merged_file():
    path = merged_path()
    if not os.path.exists(path):
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)['films']
    except (OSError, ValueError, KeyError) as e:
        logger.warning(f"Ignoring unreadable merged films file {path}: {e}")
        return None


def get_all_films():
    """Merged films from cache, then the pre-merged file, then a live merge"""
    films = get_cached_films()
    if films is not None:
        return films

    films = load_merged_file()
    if films is None:
        start = time.time()
        films = merge_all_films()
        logger.info(f"Merged {len(films)} films in {time.time() - start:.2f}s")

    set_cached_films(films, ttl=Config.FILMS_CACHE_TTL)
    return films


def get_film(film_id):
    """Find a merged film by id or film key"""
    for film in get_all_films():
        if film['id'] == film_id or film['film_key'] == film_id:
            return film
    return None


def refresh_merged_films():
    """Bring derived data in line after the data files changed"""
    if os.path.exists(merged_path()):
        try:
            films = write_merged_films()
            logger.info(f"Regenerated merged films file with {len(films)} films")
        except (OSError, ValueError, film_store.FilmStoreError) as e:
            # The source files are already updated; drop the stale file so reads merge live
            logger.error(f"Failed to regenerate merged films file: {e}")
            os.remove(merged_path())

    clear_film_cache()


def get_unique_years(films):
    return sorted({f['year'] for f in films if f.get('year') is not None}, reverse=True)


def get_unique_festivals(films):
    return sorted({fest['name'] for f in films for fest in f['festivals']})


def get_unique_providers(films):
    providers = set()
    for film in films:
        for offers in (film['streaming'], film['rent'], film['buy']):
            providers.update(o['provider'] for o in offers if o.get('provider'))
    return sorted(providers)


def get_unique_countries(films):
    return sorted({f['country'] for f in films if f.get('country')})


def get_unique_genres(films):
    return sorted({genre for f in films for genre in (f.get('genres') or [])})


def get_filter_options(films):
    return {
        'years': get_unique_years(films),
        'festivals': get_unique_festivals(films),
        'platforms': get_unique_providers(films),
        'countries': get_unique_countries(films),
        'genres': get_unique_genres(films)
    }
