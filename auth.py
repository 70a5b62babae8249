"""Session cookies and route guards"""
import functools
import logging

from flask import current_app, g, jsonify, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import Config
from database.users_db import get_user_by_id

logger = logging.getLogger(__name__)

TOKEN_SALT = 'auth-token'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def create_session_token(user):
    return _serializer().dumps({'user_id': user['id'], 'email': user['email']})


def set_session_cookie(response, user):
    response.set_cookie(
        Config.SESSION_COOKIE,
        create_session_token(user),
        max_age=Config.SESSION_MAX_AGE,
        httponly=True,
        secure=Config.SESSION_COOKIE_SECURE,
        samesite='Lax',
        path='/'
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(Config.SESSION_COOKIE, path='/')
    return response


def get_session_user():
    """The logged-in user for the current request, or None"""
    token = request.cookies.get(Config.SESSION_COOKIE)
    if not token:
        return None

    try:
        data = _serializer().loads(token, max_age=Config.SESSION_MAX_AGE)
    except SignatureExpired:
        return None
    except BadSignature:
        logger.warning("Rejected session cookie with bad signature")
        return None

    return get_user_by_id(data['user_id'])


def login_required(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        user = get_session_user()
        if not user:
            return jsonify({'error': 'Not authenticated'}), 401
        g.user = user
        return f(*args, **kwargs)

    return wrapper


def admin_only(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        if not Config.is_development():
            return jsonify({'error': 'Access denied'}), 403
        return f(*args, **kwargs)

    return wrapper
