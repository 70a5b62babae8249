import json

import redis

from conftest import read
from database import redis_client


def register(client, email='ada@example.com', password='secret1', name='Ada'):
    return client.post('/api/auth/register', json={'email': email, 'password': password, 'name': name})


def test_imports():
    import app  # noqa: F401
    import auth  # noqa: F401
    import config  # noqa: F401
    from services import check_redis, check_data  # noqa: F401


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_data_check(client):
    result = client.get('/check/data').get_json()

    assert result['status'] == 'healthy'
    assert result['service'] == 'data'
    assert result['details']['films']['total'] == 4
    assert result['details']['festivals'] == {'count': 2, 'files': 3}


def test_redis_check(client):
    result = client.get('/check/redis').get_json()
    assert result['service'] == 'redis'
    assert result['status'] in ['healthy', 'unhealthy']


def test_home_page_renders(client):
    response = client.get('/?festival=cannes')
    assert response.status_code == 200
    assert b'Anora' in response.data
    assert b'Dahomey' not in response.data


def test_film_detail_page(client):
    assert client.get('/film/aaa').status_code == 200
    assert client.get('/film/anora-2024').status_code == 200
    assert client.get('/film/missing').status_code == 404


def test_api_films_filters_and_sort(client):
    data = client.get('/api/films?year=2024&sort=title-asc').get_json()
    assert [f['title'] for f in data['films']] == ['Anora', 'Dahomey']
    assert data['count'] == 2

    data = client.get('/api/films?q=wenders').get_json()
    assert [f['id'] for f in data['films']] == ['ccc']

    data = client.get('/api/films?streaming=1&rent_buy=1&platform=Apple%20TV').get_json()
    assert [f['id'] for f in data['films']] == ['ccc']


def test_api_film(client):
    assert client.get('/api/films/bbb').get_json()['title'] == 'Dahomey'
    assert client.get('/api/films/nope').status_code == 404


def test_api_filters(client):
    options = client.get('/api/filters').get_json()
    assert options['festivals'] == ['berlin', 'cannes']
    assert options['years'] == [2024, 2023, 2022]


def test_api_data_quality(client):
    assert client.get('/api/data-quality').get_json()['summary']['total_films'] == 4
    assert client.get('/api/data-quality/cannes/2024').get_json()['summary']['total_films'] == 1
    assert client.get('/api/data-quality/sundance').status_code == 404


def test_register_login_me_logout(client):
    assert client.get('/api/auth/me').status_code == 401

    response = register(client)
    assert response.status_code == 200
    assert response.get_json()['user']['email'] == 'ada@example.com'

    me = client.get('/api/auth/me').get_json()
    assert me['success'] is True
    assert me['user']['name'] == 'Ada'

    client.post('/api/auth/logout')
    assert client.get('/api/auth/me').status_code == 401

    assert client.post('/api/auth/login', json={'email': 'ada@example.com', 'password': 'nope12'}).status_code == 401
    assert client.post('/api/auth/login', json={'email': 'ada@example.com', 'password': 'secret1'}).status_code == 200
    assert client.get('/api/auth/me').status_code == 200


def test_register_validation(client):
    assert register(client, name='').status_code == 400
    assert register(client, password='123').status_code == 400
    assert register(client).status_code == 200
    assert register(client).status_code == 409


def test_tampered_cookie_is_anonymous(client):
    client.set_cookie('auth-token', 'forged.token.value')
    assert client.get('/api/auth/me').status_code == 401


def test_watchlist_requires_session(client):
    assert client.get('/api/watchlist').status_code == 401
    assert client.post('/api/watchlist', json={'filmKey': 'anora-2024', 'filmTitle': 'Anora'}).status_code == 401


def test_watchlist_flow(client):
    register(client)

    assert client.post('/api/watchlist', json={'filmKey': 'anora-2024'}).status_code == 400
    assert client.post('/api/watchlist', json={'filmKey': 'anora-2024', 'filmTitle': 'Anora'}).status_code == 200

    watchlist = client.get('/api/watchlist').get_json()['watchlist']
    assert [item['filmKey'] for item in watchlist] == ['anora-2024']

    data = client.get('/api/films?watchlist=1').get_json()
    assert [f['id'] for f in data['films']] == ['aaa']

    exported = client.get('/api/watchlist/export').get_json()
    assert exported['total_items'] == 1

    assert client.delete('/api/watchlist').status_code == 400
    assert client.delete('/api/watchlist?filmKey=anora-2024').status_code == 200
    assert client.get('/api/watchlist').get_json()['watchlist'] == []

    response = client.post('/api/watchlist/import', json=exported)
    assert response.get_json() == {'success': True, 'itemsImported': 1}

    response = client.post('/api/watchlist/import', json=[{'filmKey': 'x'}])
    assert response.status_code == 400


def test_admin_hidden_outside_development(client):
    assert client.get('/api/admin/films').status_code == 403
    assert client.get('/admin/films').status_code == 403
    response = client.delete('/api/admin/delete-film', json={'id': 'aaa'})
    assert response.status_code == 403
    assert response.get_json() == {'error': 'Access denied'}


def test_admin_films_and_festivals(client, dev_mode):
    data = client.get('/api/admin/films').get_json()
    films = {f['id']: f for f in data['films']}

    assert data['total'] == 4
    assert films['aaa']['justwatch_found'] is True
    assert films['aaa']['streaming'][0]['provider'] == 'Viaplay'
    assert films['ddd']['festivals'] == []

    festivals = client.get('/api/admin/festivals').get_json()['festivals']
    assert festivals[1] == {'name': 'cannes', 'years': ['2023-fixed', '2024']}

    assert client.get('/api/admin/load-films').get_json()['total_films'] == 4
    assert client.get('/admin/films').status_code == 200


def test_admin_delete_film(client, dev_mode, data_dir):
    client.get('/api/films')

    response = client.delete('/api/admin/delete-film', json={'id': 'aaa'})
    assert response.status_code == 200
    assert response.get_json()['removedFromFestivals'] == 2

    ids = [f['id'] for f in client.get('/api/films').get_json()['films']]
    assert 'aaa' not in ids
    assert 'aaa' not in read(data_dir / 'films.json')['films']

    assert client.delete('/api/admin/delete-film', json={'id': 'aaa'}).status_code == 404
    assert client.delete('/api/admin/delete-film', json={}).status_code == 400


def test_admin_save_film(client, dev_mode, data_dir):
    film = read(data_dir / 'films.json')['films']['bbb']
    film['country'] = 'Senegal'
    film['festivals'] = [{'name': 'cannes', 'year': '2024'}]

    response = client.post('/api/admin/save-film', json=film)
    assert response.status_code == 200

    merged = client.get('/api/films/bbb').get_json()
    assert merged['country'] == 'Senegal'
    assert merged['festivals'] == [{'name': 'cannes', 'year': '2024', 'awarded': False}]

    assert client.post('/api/admin/save-film', json={'id': 'bbb'}).status_code == 400
    assert client.post('/api/admin/save-film', json={'id': 'new', 'title': 'X', 'year': 2020}).status_code == 404


def test_admin_remove_justwatch_regenerates_merged_file(client, dev_mode, data_dir):
    from database.films_db import write_merged_films
    write_merged_films()

    response = client.delete('/api/admin/remove-justwatch', json={'id': 'aaa'})
    assert response.get_json()['message'] == 'JustWatch data removed successfully'

    merged = json.loads((data_dir / 'merged-films.json').read_text(encoding='utf-8'))
    anora = next(f for f in merged['films'] if f['id'] == 'aaa')
    assert anora['justwatch_link'] is None
    assert anora['streaming'] == []

    response = client.delete('/api/admin/remove-justwatch', json={'id': 'aaa'})
    assert response.status_code == 200
    assert 'no JustWatch data' in response.get_json()['message']


def test_missing_master_file_is_server_error(client, data_dir):
    (data_dir / 'films.json').unlink()
    response = client.get('/api/films')
    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to load film data'}


def test_metrics_endpoint(client):
    client.get('/health')
    response = client.get('/metrics')
    assert response.status_code == 200
    assert b'festival_request_count' in response.data


def test_admin_save_film_coerces_string_year(client, dev_mode, data_dir):
    film = read(data_dir / 'films.json')['films']['bbb']
    film['year'] = '2024'
    assert client.post('/api/admin/save-film', json=film).status_code == 200
    assert read(data_dir / 'films.json')['films']['bbb']['year'] == 2024

    response = client.get('/api/films?sort=year-asc')
    assert response.status_code == 200
    assert client.get('/api/filters').get_json()['years'] == [2024, 2023, 2022]

    film['year'] = 'twenty'
    assert client.post('/api/admin/save-film', json=film).status_code == 400


def test_catalog_stays_up_when_redis_is_down(client, monkeypatch):
    register(client)

    class DownRedis:
        def __getattr__(self, name):
            def fail(*args, **kwargs):
                raise redis.ConnectionError('down')
            return fail

    monkeypatch.setattr(redis_client, '_client', DownRedis())

    response = client.get('/api/films')
    assert response.status_code == 200
    assert response.get_json()['count'] == 4
    assert client.get('/').status_code == 200

    assert client.get('/api/watchlist').status_code == 503


def test_corrupt_master_file_is_server_error(client, data_dir):
    (data_dir / 'films.json').write_text('{broken', encoding='utf-8')
    response = client.get('/api/films')
    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to load film data'}
