import json
from flask import Flask, jsonify, request, render_template, g
from config import Config
import logging
import sys
import redis

from services.redis_check import check_redis
from services.data_check import check_data

from auth import (
    login_required, admin_only, get_session_user,
    set_session_cookie, clear_session_cookie
)
from database import film_store
from database.films_db import get_all_films, get_film, get_filter_options, refresh_merged_films
from database.film_cache import clear_film_cache
from database.filters import FilterState, apply_filters, sort_films, SORT_OPTIONS
from database.data_quality import compute_data_quality
from database.users_db import create_user, validate_user, UserExistsError
from database.watchlist_db import (
    get_user_watchlist, add_to_watchlist, remove_from_watchlist,
    get_watchlist_film_keys, export_watchlist, import_watchlist, InvalidWatchlistError
)
from database.rate_limiter import check_rate_limit
from database import tmdb_client
from database.streaming_config import get_streaming_config, should_show_rent_buy, should_show_buy, get_best_provider

from metrics import (
    metrics_endpoint, track_request,
    FILTER_QUERY_COUNT, FILTER_RESULTS_COUNT,
    FILM_VIEWS, ADMIN_MUTATION_COUNT
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = Flask(__name__)
app.config.from_object(Config)


def visitor():
    """Session user for public pages; anonymous when the account store is down"""
    try:
        return get_session_user()
    except redis.RedisError as e:
        logger.warning(f"Session lookup failed, serving anonymously: {e}")
        return None


def query_films(args, user=None):
    filters = FilterState.from_args(args)
    sort_by = args.get('sort', 'year-desc')

    watchlist = None
    if filters.watchlist_only:
        watchlist = set(get_watchlist_film_keys(user['id'])) if user else set()

    FILTER_QUERY_COUNT.inc()
    films = sort_films(apply_filters(get_all_films(), filters, watchlist), sort_by)
    FILTER_RESULTS_COUNT.observe(len(films))
    return films, filters, sort_by


@app.route('/')
@track_request
def home():
    films, filters, sort_by = query_films(request.args, visitor())
    return render_template(
        'index.html',
        films=films,
        filters=filters,
        sort_by=sort_by,
        sort_options=SORT_OPTIONS,
        options=get_filter_options(get_all_films())
    )


@app.route('/film/<film_id>')
@track_request
def film_detail(film_id):
    film = get_film(film_id)
    if not film:
        return jsonify({'error': 'Film not found'}), 404

    FILM_VIEWS.labels(film_id=film['id']).inc()

    config = get_streaming_config()
    return render_template(
        'film_detail.html',
        film=film,
        best_provider=get_best_provider(film['streaming'], config),
        show_rent_buy=should_show_rent_buy(film['has_streaming'], config),
        show_buy=should_show_buy(film['has_rent'], config)
    )


@app.route('/health')
@track_request
def health():
    return jsonify({
        'status': 'healthy',
        'service': 'festival-films',
        'version': '1.0.0'
    }), 200


@app.route('/info')
def info():
    return jsonify({
        'app_name': 'Festival Films',
        'environment': Config.APP_ENV,
        'python_version': sys.version.split()[0]
    })


@app.route('/check/redis')
def check_redis_endpoint():
    result = check_redis()
    status_code = 200 if result['status'] == 'healthy' else 503
    return jsonify(result), status_code


@app.route('/check/data')
def check_data_endpoint():
    result = check_data()
    status_code = 200 if result['status'] == 'healthy' else 503
    return jsonify(result), status_code


@app.route('/api/films')
@track_request
def api_films():
    films, filters, sort_by = query_films(request.args, visitor())

    return jsonify({
        'films': films,
        'count': len(films),
        'sort': sort_by
    })


@app.route('/api/films/<film_id>')
@track_request
def api_film(film_id):
    film = get_film(film_id)
    if not film:
        return jsonify({'error': 'Film not found'}), 404

    FILM_VIEWS.labels(film_id=film['id']).inc()
    return jsonify(film)


@app.route('/api/filters')
def api_filters():
    return jsonify(get_filter_options(get_all_films()))


@app.route('/api/data-quality')
@app.route('/api/data-quality/<festival>')
@app.route('/api/data-quality/<festival>/<year>')
def api_data_quality(festival=None, year=None):
    films = get_all_films()

    if festival and not any(f['name'] == festival for film in films for f in film['festivals']):
        return jsonify({'error': 'Festival not found'}), 404

    return jsonify(compute_data_quality(films, festival, year))


@app.route('/api/tmdb-details')
def api_tmdb_details():
    tmdb_id = request.args.get('tmdbId')
    title = request.args.get('title')
    year = request.args.get('year')

    if not tmdb_id and not title:
        return jsonify({'error': 'Either TMDB ID or movie title is required'}), 400

    limit = check_rate_limit('tmdb', request.remote_addr or 'unknown', Config.RATE_LIMIT_REQUESTS_PER_MINUTE)
    if not limit['allowed']:
        return jsonify({'error': limit['message'], 'retry_after': limit['retry_after']}), 429

    try:
        if tmdb_id:
            return jsonify(tmdb_client.fetch_movie(tmdb_id))
        return jsonify(tmdb_client.search_movie(title, year))
    except tmdb_client.TMDBNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except tmdb_client.TMDBNotFound:
        return jsonify({'error': 'Movie not found on TMDB'}), 404
    except tmdb_client.TMDBError as e:
        logger.error(f"TMDB lookup failed: {e}")
        return jsonify({'error': 'Failed to fetch movie details from TMDB'}), 502


# Accounts

@app.route('/api/auth/register', methods=['POST'])
def api_register():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    name = (data.get('name') or '').strip()

    if not email or not password or not name:
        return jsonify({'error': 'Email, password, and name are required'}), 400

    if len(password) < Config.MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {Config.MIN_PASSWORD_LENGTH} characters'}), 400

    try:
        user = create_user(email, password, name)
    except UserExistsError:
        return jsonify({'error': 'An account with this email already exists'}), 409

    response = jsonify({'success': True, 'user': public_user(user)})
    return set_session_cookie(response, user)


@app.route('/api/auth/login', methods=['POST'])
def api_login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    user = validate_user(email, password)
    if not user:
        return jsonify({'error': 'Invalid email or password'}), 401

    response = jsonify({'success': True, 'user': public_user(user)})
    return set_session_cookie(response, user)


@app.route('/api/auth/logout', methods=['POST'])
def api_logout():
    return clear_session_cookie(jsonify({'success': True}))


@app.route('/api/auth/me')
def api_me():
    user = get_session_user()
    if not user:
        return jsonify({'success': False, 'user': None}), 401
    return jsonify({'success': True, 'user': public_user(user)})


def public_user(user):
    return {'id': user['id'], 'email': user['email'], 'name': user['name']}


# Watchlist

@app.route('/api/watchlist', methods=['GET'])
@login_required
def api_watchlist():
    return jsonify({'success': True, 'watchlist': get_user_watchlist(g.user['id'])})


@app.route('/api/watchlist', methods=['POST'])
@login_required
def api_watchlist_add():
    data = request.get_json(silent=True) or {}
    film_key = data.get('filmKey')
    film_title = data.get('filmTitle')

    if not film_key or not film_title:
        return jsonify({'error': 'filmKey and filmTitle are required'}), 400

    add_to_watchlist(g.user['id'], film_key, film_title)
    return jsonify({'success': True, 'message': 'Film added to watchlist'})


@app.route('/api/watchlist', methods=['DELETE'])
@login_required
def api_watchlist_remove():
    film_key = request.args.get('filmKey')
    if not film_key:
        return jsonify({'error': 'filmKey is required'}), 400

    remove_from_watchlist(g.user['id'], film_key)
    return jsonify({'success': True, 'message': 'Film removed from watchlist'})


@app.route('/api/watchlist/export')
@login_required
def api_watchlist_export():
    return jsonify(export_watchlist(g.user['id']))


@app.route('/api/watchlist/import', methods=['POST'])
@login_required
def api_watchlist_import():
    data = request.get_json(silent=True)
    try:
        count = import_watchlist(g.user['id'], data)
    except InvalidWatchlistError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({'success': True, 'itemsImported': count})


# Admin (development only)

@app.route('/admin/films')
@admin_only
def admin_films_page():
    return render_template('admin_films.html', films=admin_film_list(), festivals=film_store.list_festivals())


def admin_film_list():
    data = film_store.load_master_films()
    appearances = film_store.load_festival_appearances()
    streaming = film_store.load_streaming_data()['films']

    films = []
    for film_id, film in data['films'].items():
        info = streaming.get(film_id) or {}
        films.append({
            **film,
            'id': film.get('id', film_id),
            'festivals': appearances.get(film_id, []),
            'justwatch_url': info.get('justwatch_url'),
            'justwatch_found': bool(info.get('found')),
            'streaming': info.get('streaming') or [],
            'rent': info.get('rent') or [],
            'buy': info.get('buy') or []
        })
    return films


@app.route('/api/admin/films')
@admin_only
def api_admin_films():
    data = film_store.load_master_films()
    return jsonify({
        'films': admin_film_list(),
        'total': data.get('total_films', len(data['films'])),
        'last_updated': data.get('last_updated')
    })


@app.route('/api/admin/load-films')
@admin_only
def api_admin_load_films():
    return jsonify(film_store.load_master_films())


@app.route('/api/admin/festivals')
@admin_only
def api_admin_festivals():
    return jsonify({'festivals': film_store.list_festivals()})


@app.route('/api/admin/save-film', methods=['POST'])
@admin_only
def api_admin_save_film():
    film = request.get_json(silent=True) or {}

    try:
        film_store.save_film(film)
    except film_store.InvalidFilmError as e:
        return jsonify({'error': str(e)}), 400
    except film_store.FilmNotFoundError:
        return jsonify({'error': 'Film not found'}), 404

    ADMIN_MUTATION_COUNT.labels(action='save').inc()
    refresh_merged_films()
    return jsonify({'success': True, 'film': film})


@app.route('/api/admin/delete-film', methods=['DELETE'])
@admin_only
def api_admin_delete_film():
    data = request.get_json(silent=True) or {}

    try:
        _, removed = film_store.delete_film(data.get('id'))
    except film_store.InvalidFilmError as e:
        return jsonify({'error': str(e)}), 400
    except film_store.FilmNotFoundError:
        return jsonify({'error': 'Film not found'}), 404

    ADMIN_MUTATION_COUNT.labels(action='delete').inc()
    refresh_merged_films()
    return jsonify({
        'success': True,
        'message': 'Film deleted successfully',
        'removedFromFestivals': removed
    })


@app.route('/api/admin/remove-justwatch', methods=['DELETE'])
@admin_only
def api_admin_remove_justwatch():
    data = request.get_json(silent=True) or {}
    film_id = data.get('id')

    try:
        removed = film_store.remove_streaming(film_id)
    except film_store.InvalidFilmError as e:
        return jsonify({'error': str(e)}), 400

    if not removed:
        return jsonify({
            'success': True,
            'message': f'Film has no JustWatch data to remove. ID "{film_id}" not found in streaming data.'
        })

    ADMIN_MUTATION_COUNT.labels(action='remove_streaming').inc()
    refresh_merged_films()
    return jsonify({'success': True, 'message': 'JustWatch data removed successfully'})


@app.route('/api/admin/cache/clear', methods=['POST'])
@admin_only
def api_admin_cache_clear():
    count = clear_film_cache()
    return jsonify({'message': f'Cleared {count} cached film lists'})


@app.errorhandler(film_store.FilmStoreError)
@app.errorhandler(OSError)
@app.errorhandler(json.JSONDecodeError)
def handle_data_error(e):
    logger.error(f"Data file error: {e}")
    return jsonify({'error': 'Failed to load film data'}), 500


@app.errorhandler(redis.RedisError)
def handle_redis_error(e):
    logger.error(f"Redis error: {e}")
    return jsonify({'error': 'Account service unavailable'}), 503


@app.route('/metrics')
@track_request
def metrics():
    return metrics_endpoint()


if __name__ == '__main__':
    app.run(
        host=Config.HOST,
        port=Config.PORT,
        debug=Config.DEBUG
    )
