"""
User registration and login against the save store.

Passwords are stored as salted, peppered PBKDF2-SHA256 digests; the pepper
comes from deployment settings and never touches the database.
"""

import hashlib
import logging
import secrets
import sqlite3

from storage import SaveStore

logger = logging.getLogger(__name__)

HASH_ITERATIONS = 200_000


class AuthError(Exception):
    """Unknown username or wrong password."""


class ConflictError(Exception):
    """Username already taken."""


def hash_password(password: str, salt: str, pepper: str = "") -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        (password + pepper).encode(),
        salt.encode(),
        HASH_ITERATIONS,
    )
    return digest.hex()


def register(store: SaveStore, username: str, password: str, pepper: str = "") -> int:
    """
    Create a user.

    Returns:
        The new user id

    Raises:
        ConflictError: if the username is taken
    """
    salt = secrets.token_hex(8)
    try:
        user_id = store.create_user(username, hash_password(password, salt, pepper), salt)
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"username {username!r} is already taken") from e
    logger.info(f"Registered user {username} (id {user_id})")
    return user_id


def login(store: SaveStore, username: str, password: str, pepper: str = "") -> int:
    """Return the user id for valid credentials, AuthError otherwise."""
    user = store.get_user_by_username(username)
    if user is None:
        raise AuthError("invalid username or password")
    candidate = hash_password(password, user.salt, pepper)
    if not secrets.compare_digest(candidate, user.password_hash):
        raise AuthError("invalid username or password")
    return user.id
