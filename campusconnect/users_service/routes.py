"""
User profile routes: fetch the profile and manage the saved-events list.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId
from flask import Blueprint, Response, g, jsonify, request
from pymongo.errors import PyMongoError

from campusconnect.auth_service.models import PUBLIC_USER_PROJECTION, public_user
from campusconnect.auth_service.utils import login_required
from campusconnect.database.db_connection import get_db
from campusconnect.database.documents import to_object_id
from campusconnect.events_service.models import serialize_event

users_bp = Blueprint("users", __name__)


@users_bp.before_request
def before_request() -> None:
    logging.info(f"[Users] Incoming {request.method} {request.path}")


@users_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Users] Response {response.status}")
    return response


def load_profile(user_id: ObjectId) -> Optional[Dict[str, Any]]:
    """
    Load a user (no password) with savedEvents resolved to full events.

    Events keep the order they were saved in. References to events that no
    longer exist are left out.
    """
    db = get_db()
    user = db.users.find_one({"_id": user_id}, PUBLIC_USER_PROJECTION)
    if not user:
        return None

    saved = user.get("savedEvents") or []
    by_id = {e["_id"]: e for e in db.events.find({"_id": {"$in": saved}})} if saved else {}
    user["savedEvents"] = [serialize_event(by_id[i]) for i in saved if i in by_id]
    return public_user(user)


def _profile_response() -> Tuple[Response, int]:
    profile = load_profile(g.user["_id"])
    if not profile:
        return jsonify({"message": "User not found"}), 404
    return jsonify(profile), 200


# --- PROFILE ---
@users_bp.route("/me", methods=["GET"])
@login_required
def get_profile() -> Tuple[Response, int]:
    """
    Returns:
        200: The requester's profile with saved events populated.
        401: Authentication failure.
        500: Database error.
    """
    try:
        return _profile_response()
    except PyMongoError:
        logging.exception("[Users] Failed to load profile")
        return jsonify({"message": "Server error"}), 500


# --- SAVE EVENT ---
@users_bp.route("/me/events/<event_id>", methods=["POST"])
@login_required
def save_event(event_id: str) -> Tuple[Response, int]:
    """
    Add an event to the requester's saved list.

    Returns:
        200: Updated profile.
        400: Event already saved.
        404: Event not found.
        500: Database error.
    """
    oid = to_object_id(event_id)
    if not oid:
        return jsonify({"message": "Event not found"}), 404

    if oid in (g.user.get("savedEvents") or []):
        return jsonify({"message": "Event already saved"}), 400

    db = get_db()
    try:
        if not db.events.find_one({"_id": oid}, {"_id": 1}):
            return jsonify({"message": "Event not found"}), 404

        # $addToSet keeps the list a set even if two saves race
        db.users.update_one(
            {"_id": g.user["_id"]},
            {"$addToSet": {"savedEvents": oid}, "$set": {"updatedAt": datetime.now(timezone.utc)}},
        )
        return _profile_response()
    except PyMongoError:
        logging.exception(f"[Users] Failed to save event {event_id}")
        return jsonify({"message": "Server error"}), 500


# --- UNSAVE EVENT ---
@users_bp.route("/me/events/<event_id>", methods=["DELETE"])
@login_required
def unsave_event(event_id: str) -> Tuple[Response, int]:
    """
    Remove an event from the requester's saved list. Removing an event that
    is not in the list is a no-op.

    Returns:
        200: Updated profile.
        500: Database error.
    """
    oid = to_object_id(event_id)
    try:
        if oid:
            get_db().users.update_one(
                {"_id": g.user["_id"]},
                {"$pull": {"savedEvents": oid}, "$set": {"updatedAt": datetime.now(timezone.utc)}},
            )
        return _profile_response()
    except PyMongoError:
        logging.exception(f"[Users] Failed to unsave event {event_id}")
        return jsonify({"message": "Server error"}), 500
