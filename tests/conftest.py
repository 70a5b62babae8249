import json
import os
import sys

import fakeredis
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import Config  # noqa: E402
from database import redis_client  # noqa: E402


MASTER = {
    'last_updated': '2025-01-01T00:00:00+00:00',
    'total_films': 4,
    'films': {
        'aaa': {
            'id': 'aaa', 'filmKey': 'anora-2024', 'title': 'Anora', 'year': 2024,
            'director': 'Sean Baker', 'country': 'United States', 'mubiLink': 'https://mubi.com/films/anora',
            'tmdb_id': 1, 'poster_url_tmdb': 'https://img/anora.jpg', 'genres': ['Drama', 'Comedy'],
            'runtime': 139
        },
        'bbb': {
            'id': 'bbb', 'filmKey': 'dahomey-2024', 'title': 'Dahomey', 'year': 2024,
            'director': 'Mati Diop', 'country': 'France', 'mubiLink': '',
            'tmdb_id': 2, 'poster_path': '/dahomey.jpg', 'genres': ['Documentary']
        },
        'ccc': {
            'id': 'ccc', 'title': 'Perfect Days', 'year': 2023,
            'director': 'Wim Wenders', 'country': 'Japan', 'mubiLink': None,
            'tmdb_id': 3, 'genres': ['Drama'],
            'cast': [{'name': 'A'}, {'name': 'B'}, 'C', {'name': 'D'}, 'E', 'F', 'G']
        },
        'ddd': {
            'id': 'ddd', 'title': 'Orphan Film', 'year': 2022,
            'director': None, 'country': None, 'mubiLink': None, 'tmdb_id': None
        }
    }
}

FESTIVALS = {
    ('cannes', '2024'): [{'id': 'aaa'}],
    ('cannes', '2023-fixed'): [{'id': 'ccc'}],
    ('berlin', '2024'): [{'id': 'bbb'}, {'id': 'aaa'}, {'id': 'zzz'}],
}

STREAMING = {
    'last_updated': '2025-01-01T00:00:00+00:00',
    'country': 'NO',
    'total_films': 3,
    'films': {
        'aaa': {
            'found': True, 'title': 'Anora', 'year': 2024,
            'justwatch_url': 'https://www.justwatch.com/no/movie/anora',
            'streaming': [{'provider': 'Viaplay', 'quality': 'HD', 'price': None, 'url': None}],
            'rent': [{'provider': 'Apple TV', 'quality': 'HD', 'price': 'NOK 49', 'url': None}],
            'buy': []
        },
        'ccc': {
            'found': True, 'title': 'Perfect Days', 'year': 2023,
            'poster_url': 'https://jw/perfect-days.jpg',
            'streaming': [],
            'rent': [{'provider': 'Apple TV', 'quality': 'HD', 'price': 'NOK 39', 'url': None}],
            'buy': [{'provider': 'Amazon Video', 'quality': 'HD', 'price': 'NOK 99', 'url': None}]
        },
        'bbb': {'found': False, 'title': 'Dahomey', 'year': 2024}
    }
}

AWARDS = {
    'metadata': {},
    'awards': [],
    'films': {
        'anora-2024': {
            'awarded': True,
            'awards': [{'festival': 'Cannes', 'award': "Palme d'Or", 'year': 2024}]
        }
    }
}


def write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding='utf-8')


def read(path):
    return json.loads(path.read_text(encoding='utf-8'))


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    write(tmp_path / 'films.json', MASTER)
    for (festival, year), entries in FESTIVALS.items():
        write(tmp_path / 'festivals' / festival / f'{year}.json', entries)
    write(tmp_path / 'streaming' / 'availability.json', STREAMING)
    write(tmp_path / 'awards' / 'filmpriser.json', AWARDS)
    (tmp_path / 'festivals' / 'README.txt').write_text('not a festival', encoding='utf-8')

    monkeypatch.setattr(Config, 'DATA_DIR', str(tmp_path))
    return tmp_path


@pytest.fixture
def fake_redis(monkeypatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, '_client', client)
    return client


@pytest.fixture
def client(data_dir, fake_redis, monkeypatch):
    monkeypatch.setattr(Config, 'SESSION_COOKIE_SECURE', False)
    from app import app

    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def dev_mode(monkeypatch):
    monkeypatch.setattr(Config, 'APP_ENV', 'development')
