"""Per-user watchlists stored in Redis as JSON lists"""
import json
import logging
import re
from datetime import datetime, timezone

from database.redis_client import get_redis_client

logger = logging.getLogger(__name__)

FILM_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
MAX_TITLE_LENGTH = 500
ITEM_FIELDS = {'filmKey', 'title', 'addedAt'}


class InvalidWatchlistError(Exception):
    pass


def watchlist_key(user_id):
    return f"watchlist:{user_id}"


def _load(user_id):
    raw = get_redis_client().get(watchlist_key(user_id))
    return json.loads(raw) if raw else []


def _save(user_id, items):
    get_redis_client().set(watchlist_key(user_id), json.dumps(items))


def _update(user_id, change):
    """
    Read-modify-write a watchlist inside a WATCH/MULTI transaction

    change(items) returns (new_items, result); new_items of None skips the write.
    Retried by redis-py when another client touches the key in between.
    """
    key = watchlist_key(user_id)

    def apply(pipe):
        raw = pipe.get(key)
        items, result = change(json.loads(raw) if raw else [])
        pipe.multi()
        if items is not None:
            pipe.set(key, json.dumps(items))
        return result

    return get_redis_client().transaction(apply, key, value_from_callable=True)


def add_to_watchlist(user_id, film_key, film_title):
    """Returns False if the film was already on the list"""
    def change(items):
        if any(item['filmKey'] == film_key for item in items):
            return None, False

        items.append({
            'filmKey': film_key,
            'title': film_title,
            'addedAt': datetime.now(timezone.utc).isoformat()
        })
        return items, True

    return _update(user_id, change)


def remove_from_watchlist(user_id, film_key):
    def change(items):
        remaining = [item for item in items if item['filmKey'] != film_key]
        return remaining, len(remaining) < len(items)

    return _update(user_id, change)


def _parse_date(value):
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_user_watchlist(user_id):
    """Most recently added first"""
    return sorted(_load(user_id), key=lambda item: _parse_date(item['addedAt']), reverse=True)


def is_in_watchlist(user_id, film_key):
    return any(item['filmKey'] == film_key for item in _load(user_id))


def get_watchlist_film_keys(user_id):
    return [item['filmKey'] for item in get_user_watchlist(user_id)]


def export_watchlist(user_id):
    return {
        'export_date': datetime.now(timezone.utc).isoformat(),
        'total_items': len(_load(user_id)),
        'items': get_user_watchlist(user_id)
    }


def is_valid_item(item):
    if not isinstance(item, dict) or set(item) != ITEM_FIELDS:
        return False
    if not all(isinstance(item[name], str) for name in ITEM_FIELDS):
        return False
    if not FILM_KEY_PATTERN.match(item['filmKey']):
        return False
    if not 0 < len(item['title']) < MAX_TITLE_LENGTH:
        return False

    try:
        _parse_date(item['addedAt'])
    except ValueError:
        return False
    return True


def import_watchlist(user_id, items):
    """
    Replace a user's watchlist with imported items

    Accepts either a list of items or an export document with an 'items' list.
    Nothing is written unless every item is valid.

    Raises:
        InvalidWatchlistError: payload is not a list of valid items
    """
    if isinstance(items, dict):
        items = items.get('items')
    if not isinstance(items, list):
        raise InvalidWatchlistError('Expected a list of watchlist items')

    for index, item in enumerate(items):
        if not is_valid_item(item):
            raise InvalidWatchlistError(f'Invalid watchlist item at position {index}')

    unique = {}
    for item in items:
        unique.setdefault(item['filmKey'], item)

    _save(user_id, list(unique.values()))
    logger.info(f"Imported {len(unique)} watchlist items for {user_id}")
    return len(unique)
