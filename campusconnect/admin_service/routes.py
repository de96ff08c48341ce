"""
Admin routes: review organizer applications.

Every route requires a logged-in admin.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, jsonify, request
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from campusconnect.auth_service.models import (
    PUBLIC_USER_PROJECTION,
    OrganizerStatus,
    Role,
    public_user,
)
from campusconnect.auth_service.utils import login_required, role_required
from campusconnect.database.db_connection import get_db
from campusconnect.database.documents import serialize_docs, to_object_id

admin_bp = Blueprint("admin", __name__)


@admin_bp.before_request
def before_request() -> None:
    logging.info(f"[Admin] Incoming {request.method} {request.path}")


@admin_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Admin] Response {response.status}")
    return response


def _decide_application(user_id: str, changes: Dict[str, Any], message: str) -> Tuple[Response, int]:
    """
    Apply `changes` to a user whose organizer application is pending.

    The update is conditional on the status still being pending, so two
    concurrent decisions cannot both apply.
    """
    oid = to_object_id(user_id)
    db = get_db()
    try:
        user = db.users.find_one({"_id": oid}, PUBLIC_USER_PROJECTION) if oid else None
        if not user:
            return jsonify({"message": "User not found"}), 404

        if user.get("organizerStatus") != OrganizerStatus.PENDING.value:
            return jsonify({"message": "This user does not have a pending application"}), 400

        updated = db.users.find_one_and_update(
            {"_id": oid, "organizerStatus": OrganizerStatus.PENDING.value},
            {"$set": dict(changes, updatedAt=datetime.now(timezone.utc))},
            projection=PUBLIC_USER_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError:
        logging.exception(f"[Admin] Failed to update application for {user_id}")
        return jsonify({"message": "Server error"}), 500

    if not updated:
        return jsonify({"message": "This user does not have a pending application"}), 400

    logging.info(f"[Admin] {message}: {user_id}")
    return jsonify({"message": message, "user": public_user(updated)}), 200


# --- PENDING APPLICATIONS ---
@admin_bp.route("/pending-organizers", methods=["GET"])
@login_required
@role_required(Role.ADMIN)
def pending_organizers() -> Tuple[Response, int]:
    """
    Returns:
        200: Users whose organizer application is pending.
        401/403: Not logged in / not an admin.
        500: Database error.
    """
    try:
        users = list(get_db().users.find({"organizerStatus": OrganizerStatus.PENDING.value}, PUBLIC_USER_PROJECTION))
    except PyMongoError:
        logging.exception("[Admin] Failed to list pending organizers")
        return jsonify({"message": "Server error"}), 500

    return jsonify(serialize_docs(users, exclude=("password",))), 200


# --- APPROVE ---
@admin_bp.route("/approve-organizer/<user_id>", methods=["PUT"])
@login_required
@role_required(Role.ADMIN)
def approve_organizer(user_id: str) -> Tuple[Response, int]:
    """
    Grant the organizer role to a user with a pending application.

    Returns:
        200: {"message", "user"}
        400: No pending application.
        404: User not found.
    """
    return _decide_application(
        user_id,
        {"role": Role.ORGANIZER.value, "organizerStatus": OrganizerStatus.APPROVED.value},
        "User approved as organizer",
    )


# --- REJECT ---
@admin_bp.route("/reject-organizer/<user_id>", methods=["PUT"])
@login_required
@role_required(Role.ADMIN)
def reject_organizer(user_id: str) -> Tuple[Response, int]:
    """
    Reject a pending application. The user's role is left as it was.

    Returns:
        200: {"message", "user"}
        400: No pending application.
        404: User not found.
    """
    return _decide_application(
        user_id,
        {"organizerStatus": OrganizerStatus.NONE.value},
        "Application rejected",
    )
