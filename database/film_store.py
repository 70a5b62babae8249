"""Read and rewrite the JSON data files the catalog is built from.

The master file (films.json) holds one record per film keyed by its short id.
Festival appearances live in festivals/<festival>/<year>.json as lists of
{"id": ...} references, and streaming availability is keyed by the same id.
Admin mutations must keep all of these files consistent with each other.
"""
import json
import logging
import os
import re
import threading
from datetime import datetime, timezone

from config import Config

logger = logging.getLogger(__name__)

MASTER_FILE = 'films.json'
FESTIVALS_DIR = 'festivals'
STREAMING_FILE = os.path.join('streaming', 'availability.json')
AWARDS_FILE = os.path.join('awards', 'filmpriser.json')

_write_lock = threading.Lock()


class FilmStoreError(Exception):
    pass


class FilmNotFoundError(FilmStoreError):
    pass


class InvalidFilmError(FilmStoreError):
    pass


def data_path(*parts):
    return os.path.join(Config.DATA_DIR, *parts)


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    tmp = path + '.tmp'
    with open(tmp, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


def normalize_year(raw_year):
    """'2024-fixed' -> '2024', '2019+' -> '2019'"""
    return re.sub(r'[-+].*$', '', raw_year)


def load_master_films():
    return read_json(data_path(MASTER_FILE))


def iter_festival_files():
    """
    Yield every festival year file

    Yields:
        tuple: (festival_name, display_year, raw_year, path)
    """
    festivals_dir = data_path(FESTIVALS_DIR)
    if not os.path.isdir(festivals_dir):
        logger.warning(f"Festivals directory not found: {festivals_dir}")
        return

    for festival_name in sorted(os.listdir(festivals_dir)):
        festival_path = os.path.join(festivals_dir, festival_name)
        if not os.path.isdir(festival_path):
            continue

        for year_file in sorted(os.listdir(festival_path)):
            if not year_file.endswith('.json'):
                continue
            raw_year = year_file[:-len('.json')]
            yield festival_name, normalize_year(raw_year), raw_year, os.path.join(festival_path, year_file)


def read_festival_ids(path):
    """Return the list of {id} entries in a festival file, or None if it is not a list"""
    entries = read_json(path)
    if not isinstance(entries, list):
        logger.warning(f"Expected array format in {path}, skipping")
        return None
    return entries


def _entry_id(entry):
    return entry.get('id') if isinstance(entry, dict) else None


def load_festival_appearances():
    """Map film id -> list of {name, year} appearances"""
    appearances = {}

    for festival_name, year, _, path in iter_festival_files():
        entries = read_festival_ids(path)
        if entries is None:
            continue

        for entry in entries:
            film_id = _entry_id(entry)
            if not film_id:
                continue
            film_festivals = appearances.setdefault(film_id, [])
            appearance = {'name': festival_name, 'year': year}
            if appearance not in film_festivals:
                film_festivals.append(appearance)

    return appearances


def load_streaming_data():
    path = data_path(STREAMING_FILE)
    if not os.path.exists(path):
        logger.info("No streaming availability file, using empty data")
        return {
            'last_updated': now_iso(),
            'country': Config.STREAMING_COUNTRY,
            'total_films': 0,
            'films': {}
        }

    data = read_json(path)
    data.setdefault('films', {})
    return data


def load_awards():
    """Map '<normalized title>-<year>' -> {awarded, awards}"""
    path = data_path(AWARDS_FILE)
    if not os.path.exists(path):
        return {}

    try:
        data = read_json(path)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading awards: {e}")
        return {}

    return {
        key: {
            'awarded': bool(film.get('awarded')),
            'awards': film.get('awards', [])
        }
        for key, film in data.get('films', {}).items()
    }


def list_festivals():
    festivals = {}
    for festival_name, _, raw_year, _ in iter_festival_files():
        festivals.setdefault(festival_name, []).append(raw_year)

    return [
        {'name': name, 'years': sorted(years)}
        for name, years in sorted(festivals.items())
    ]


def save_film(film):
    """
    Update a master film record and reconcile its festival appearances

    Args:
        film: dict with at least id, title and year; an optional
              'festivals' list of {name, year} says where the film appears

    Returns:
        list: festival files that were rewritten
    """
    if not film.get('id') or not film.get('title') or not film.get('year'):
        raise InvalidFilmError('Missing required fields (id, title, year)')

    try:
        year = int(film['year'])
    except (TypeError, ValueError):
        raise InvalidFilmError(f"Invalid year: {film['year']!r}")

    film_id = film['id']
    festivals = film.get('festivals') or []
    wanted = {(f.get('name'), str(f.get('year'))) for f in festivals}
    record = {key: value for key, value in film.items() if key != 'festivals'}
    record['year'] = year

    changed = []
    with _write_lock:
        data = load_master_films()
        if film_id not in data['films']:
            raise FilmNotFoundError(film_id)

        data['films'][film_id] = record
        data['last_updated'] = now_iso()
        write_json(data_path(MASTER_FILE), data)

        for festival_name, year, _, path in iter_festival_files():
            entries = read_festival_ids(path)
            if entries is None:
                continue

            should_include = (festival_name, year) in wanted
            is_included = any(_entry_id(e) == film_id for e in entries)

            if should_include and not is_included:
                entries.append({'id': film_id})
            elif is_included and not should_include:
                entries = [e for e in entries if _entry_id(e) != film_id]
            else:
                continue

            write_json(path, entries)
            changed.append(path)

    logger.info(f"Updated film: {record['title']} ({record['year']}) [{film_id}]")
    logger.info(f"Updated festival appearances: {len(festivals)} festivals, {len(changed)} files rewritten")
    return changed


def delete_film(film_id):
    """
    Remove a film from the master file and from every festival file

    Returns:
        tuple: (title, number of festival files it was removed from)
    """
    if not film_id:
        raise InvalidFilmError('Film ID is required')

    with _write_lock:
        data = load_master_films()
        if film_id not in data['films']:
            raise FilmNotFoundError(film_id)

        title = data['films'].pop(film_id).get('title')
        data['total_films'] = len(data['films'])
        data['last_updated'] = now_iso()
        write_json(data_path(MASTER_FILE), data)

        removed_from = 0
        for _, _, _, path in iter_festival_files():
            entries = read_festival_ids(path)
            if entries is None:
                continue

            remaining = [e for e in entries if _entry_id(e) != film_id]
            if len(remaining) < len(entries):
                write_json(path, remaining)
                removed_from += 1

    logger.info(f"Deleted film: {title} [{film_id}]")
    logger.info(f"Removed from {removed_from} festival files")
    return title, removed_from


def remove_streaming(film_id):
    """Drop a film's availability entry. Returns False if it had none."""
    if not film_id:
        raise InvalidFilmError('Film ID is required')

    path = data_path(STREAMING_FILE)
    with _write_lock:
        if not os.path.exists(path):
            return False

        data = read_json(path)
        films = data.get('films') or {}
        if film_id not in films:
            similar = next((key for key in films if key.lower() == film_id.lower()), None)
            if similar:
                logger.info(f"Film ID {film_id!r} not in streaming data; found similar ID {similar!r}")
            return False

        removed = films.pop(film_id)
        data['films'] = films
        data['total_films'] = len(films)
        data['last_updated'] = now_iso()
        write_json(path, data)

    logger.info(f"Removed streaming data for {film_id} (url={removed.get('justwatch_url')}, found={removed.get('found')})")
    return True
