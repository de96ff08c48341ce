"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Current identity (/me)

Token logic lives in `auth_service.utils`.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from argon2.exceptions import Argon2Error, InvalidHashError
from flask import Blueprint, Response, g, jsonify, request
from jwt import PyJWTError
from pymongo.errors import DuplicateKeyError, PyMongoError

from campusconnect.auth_service.models import (
    SELF_SERVICE_ROLES,
    Identity,
    Role,
    new_user_document,
    public_user,
)
from campusconnect.auth_service.utils import (
    get_token_service,
    hash_password,
    login_required,
    needs_rehash,
    verify_password,
)
from campusconnect.database.db_connection import get_db

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Auth] Response {response.status}")
    return response


def _has_non_string(data: Dict[str, Any], *keys: str) -> bool:
    """True if any of `keys` is present with a value that is not a string."""
    return any(data.get(k) is not None and not isinstance(data[k], str) for k in keys)


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user.

    Expects a JSON body with:
    - name (str)
    - email (str): Unique email address.
    - password (str)
    - college (str, optional)
    - role (str, optional): "student" (default) or "organizer". Asking for
      "organizer" files an application for an admin to approve.

    Returns:
        201: {"user": <user without password>}
        400: Missing fields, invalid role, or email already exists.
        500: Server-side error (hashing or database).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(data, dict) or _has_non_string(data, "name", "email", "password", "college", "role"):
        return jsonify({"message": "Invalid input"}), 400

    name: str = (data.get("name") or "").strip()
    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password") or ""
    college = data.get("college") or None

    if not name or not email or not password:
        return jsonify({"message": "Name, email and password required"}), 400

    try:
        requested_role = Role(data.get("role") or Role.STUDENT.value)
    except ValueError:
        requested_role = None
    if requested_role not in SELF_SERVICE_ROLES:
        return jsonify({"message": "Invalid role"}), 400

    db = get_db()
    try:
        if db.users.find_one({"email": email}, {"_id": 1}):
            return jsonify({"message": "User already exists"}), 400

        user = new_user_document(name, email, hash_password(password), college, requested_role)
        result = db.users.insert_one(user)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email
        return jsonify({"message": "User already exists"}), 400
    except (PyMongoError, Argon2Error):
        logging.exception("[Auth] Registration failed")
        return jsonify({"message": "Server error"}), 500

    user["_id"] = result.inserted_id
    logging.info(f"[Auth] Registered user {result.inserted_id}")
    return jsonify({"user": public_user(user)}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: {"token": <jwt>}
        400: Missing credentials, or invalid credentials (unknown email and
             wrong password are reported identically).
        500: Database, hashing, or signing error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(data, dict) or _has_non_string(data, "email", "password"):
        return jsonify({"message": "Invalid input"}), 400

    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password") or ""

    if not email or not password:
        return jsonify({"message": "Email and password required"}), 400

    db = get_db()
    try:
        user = db.users.find_one({"email": email})
        if not user or not verify_password(user["password"], password):
            return jsonify({"message": "Invalid Credentials"}), 400

        if needs_rehash(user["password"]):
            db.users.update_one(
                {"_id": user["_id"]},
                {"$set": {"password": hash_password(password), "updatedAt": datetime.now(timezone.utc)}},
            )

        token = get_token_service().issue(Identity(id=str(user["_id"]), role=Role(user["role"])))
    except (PyMongoError, Argon2Error, InvalidHashError, PyJWTError, ValueError):
        logging.exception("[Auth] Login failed")
        return jsonify({"message": "Server error"}), 500

    return jsonify({"token": token}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
@login_required
def get_current_user() -> Tuple[Response, int]:
    """
    Echo the identity resolved from the bearer token.

    Returns:
        200: User object (no password).
        401: Authentication failure.
    """
    return jsonify(public_user(g.user)), 200
