"""User accounts stored in Redis"""
import json
import logging
import secrets
import time
from datetime import datetime, timezone

from werkzeug.security import generate_password_hash, check_password_hash

from database.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class UserExistsError(Exception):
    pass


def _public(user):
    return {key: value for key, value in user.items() if key != 'password_hash'}


def generate_user_id():
    return f"user_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def create_user(email, password, name):
    """
    Create a new account

    Raises:
        UserExistsError: an account with this email already exists
    """
    client = get_redis_client()
    email = email.strip().lower()

    user = {
        'id': generate_user_id(),
        'email': email,
        'name': name.strip(),
        'password_hash': generate_password_hash(password),
        'created_at': datetime.now(timezone.utc).isoformat()
    }
    payload = json.dumps(user)

    # SETNX on the email key makes the existence check and the write one step
    if not client.set(f"user:{email}", payload, nx=True):
        raise UserExistsError(email)
    client.set(f"user:id:{user['id']}", payload)

    logger.info(f"Created user {user['id']}")
    return _public(user)


def validate_user(email, password):
    """Return the user for valid credentials, otherwise None"""
    raw = get_redis_client().get(f"user:{email.strip().lower()}")
    if not raw:
        return None

    user = json.loads(raw)
    if not check_password_hash(user['password_hash'], password):
        return None

    return _public(user)


def get_user_by_id(user_id):
    raw = get_redis_client().get(f"user:id:{user_id}")
    if not raw:
        return None
    return _public(json.loads(raw))
