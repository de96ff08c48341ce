"""
Shared authentication helpers.
Provides password hashing, token creation/verification, and the
login_required / role_required view decorators.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError
from flask import Response, current_app, g, jsonify, request
from pymongo.errors import PyMongoError

from campusconnect.auth_service.models import PUBLIC_USER_PROJECTION, Identity, Role
from campusconnect.database.db_connection import get_db
from campusconnect.database.documents import to_object_id

# Key under which the app factory stores the TokenService
TOKENS_EXTENSION_KEY = "campusconnect.tokens"

ph = PasswordHasher()


# --- PASSWORD HASHING ---
def hash_password(password: str) -> str:
    """
    Hash a password with argon2id and a fresh random salt.

    Raises:
        argon2.exceptions.HashingError: If hashing fails.
    """
    return ph.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Returns:
        bool: True on match, False on mismatch.

    Raises:
        argon2.exceptions.VerificationError / InvalidHashError: If the stored
        hash is corrupt or verification fails for a reason other than a
        mismatch.
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False


def needs_rehash(password_hash: str) -> bool:
    return ph.check_needs_rehash(password_hash)


# --- JWT ---
class TokenService:
    """
    Issues and verifies signed, time-limited identity tokens.

    Payload shape: {"user": {"id": ..., "role": ...}, "iat": ..., "exp": ...}
    """

    def __init__(self, secret: str, expires_in: timedelta = timedelta(hours=1), algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def issue(self, identity: Identity) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "user": {"id": identity.id, "role": identity.role.value},
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        """
        Decode a token back into the identity it was issued for.

        Raises:
            jwt.ExpiredSignatureError: The token is past its expiry.
            jwt.InvalidTokenError: Bad signature, malformed token, or a
                payload that does not carry a valid identity.
        """
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self.algorithm],
            options={"require": ["exp", "iat"]},
        )
        user = payload.get("user")
        if not isinstance(user, dict) or not user.get("id"):
            raise jwt.InvalidTokenError("Token carries no identity")
        try:
            role = Role(user.get("role"))
        except ValueError:
            raise jwt.InvalidTokenError("Token carries an unknown role")
        return Identity(id=str(user["id"]), role=role)


def get_token_service() -> TokenService:
    return current_app.extensions[TOKENS_EXTENSION_KEY]


# --- AUTH GATE ---
def load_user(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch a user record without its password.

    Returns:
        dict or None if the id is malformed or no such user exists.
    """
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return get_db().users.find_one({"_id": oid}, PUBLIC_USER_PROJECTION)


def authenticate_request() -> Tuple[Optional[Dict[str, Any]], Optional[Response], Optional[int]]:
    """
    Verify the bearer token on the current request and resolve its user.

    Returns:
        tuple: (user, error_response, status_code)
               If successful, error_response and status_code are None.
               If failed, user is None.
    """
    auth = request.headers.get("Authorization", "")
    parts = auth.split(" ", 1)
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
        return None, jsonify({"message": "Not authorized, no token"}), 401

    try:
        identity = get_token_service().verify(parts[1].strip())
    except jwt.InvalidTokenError as e:
        logging.info(f"[Auth] Token rejected: {type(e).__name__}")
        return None, jsonify({"message": "Not authorized, token failed"}), 401

    try:
        user = load_user(identity.id)
    except PyMongoError:
        logging.exception("[Auth] Failed to resolve token user")
        return None, jsonify({"message": "Server error"}), 500

    if not user:
        return None, jsonify({"message": "Not authorized, user not found"}), 401

    return user, None, None


def login_required(view: Callable) -> Callable:
    """
    Reject the request unless it carries a valid token for an existing user.
    The resolved user (minus password) is available as `g.user`.
    """

    @wraps(view)
    def wrapped(*args, **kwargs):
        user, err, code = authenticate_request()
        if err:
            return err, code
        g.user = user
        return view(*args, **kwargs)

    return wrapped


# --- ROLE GATE ---
def role_required(required: Role) -> Callable:
    """
    Restrict a view to one role. Must be stacked below @login_required so
    that `g.user` is already populated.
    """

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapped(*args, **kwargs):
            try:
                role = Role(g.user.get("role"))
            except ValueError:
                role = None

            if role is not required:
                return jsonify({"message": f"Not authorized, {required.value} role required"}), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator
