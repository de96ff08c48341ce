"""
Events service routes: create, list, read, update and delete events.
Listing supports college/category filters, free-text search and a
past/upcoming date window.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, g, jsonify, request
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from campusconnect.auth_service.models import Role
from campusconnect.auth_service.utils import login_required, role_required
from campusconnect.database.db_connection import get_db
from campusconnect.database.documents import serialize_docs, to_object_id
from campusconnect.events_service.models import (
    REQUIRED_FIELDS,
    UPDATABLE_FIELDS,
    missing_fields,
    new_event_document,
    parse_dt,
    serialize_event,
)
from campusconnect.events_service.query import build_event_query

events_bp = Blueprint("events", __name__)


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


def _load_owned_event(event_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Response], Optional[int]]:
    """
    Fetch an event and check the requester owns it.

    Returns:
        tuple: (event, error_response, status_code)
    """
    oid = to_object_id(event_id)
    event = get_db().events.find_one({"_id": oid}) if oid else None
    if not event:
        return None, jsonify({"message": "Event not found"}), 404

    if event.get("organizer") != g.user["_id"]:
        logging.warning(f"[Events] User {g.user['_id']} denied write on event {event_id}")
        return None, jsonify({"message": "User not authorized"}), 401

    return event, None, None


# --- CREATE ---
@events_bp.route("", methods=["POST"])
@login_required
@role_required(Role.ORGANIZER)
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the requesting organizer.

    Expects JSON with title, description, date (ISO-8601), venue, college,
    category and optionally registrationLink.

    Returns:
        201: The stored event.
        400: Missing fields or bad date.
        401/403: Not logged in / not an organizer.
        500: Database error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid input"}), 400

    missing = missing_fields(data)
    if missing:
        return jsonify({"message": f"Missing required fields: {', '.join(missing)}"}), 400

    date = parse_dt(data.get("date"))
    if not date:
        return jsonify({"message": "Invalid date format. Use ISO-8601."}), 400

    event = new_event_document(data, date, g.user["_id"])
    try:
        result = get_db().events.insert_one(event)
    except PyMongoError:
        logging.exception("[Events] Failed to create event")
        return jsonify({"message": "Server error"}), 500

    event["_id"] = result.inserted_id
    return jsonify(serialize_event(event)), 201


# --- LIST ---
@events_bp.route("", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    List events.

    Query params (all optional):
    - college, category: exact match
    - search: free-text search over title, description, college, category
    - dateFilter: "past" (newest first) or "upcoming" (soonest first)

    Returns:
        200: List of events.
        500: Database error.
    """
    query = build_event_query(request.args)
    try:
        events = list(get_db().events.find(query.filter).sort(query.sort))
    except PyMongoError:
        logging.exception("[Events] Failed to list events")
        return jsonify({"message": "Server error"}), 500

    return jsonify(serialize_docs(events)), 200


# --- MY EVENTS ---
@events_bp.route("/myevents", methods=["GET"])
@login_required
def my_events() -> Tuple[Response, int]:
    """Events organized by the requester, newest date first."""
    try:
        events = list(get_db().events.find({"organizer": g.user["_id"]}).sort([("date", DESCENDING)]))
    except PyMongoError:
        logging.exception("[Events] Failed to list organizer events")
        return jsonify({"message": "Server error"}), 500

    return jsonify(serialize_docs(events)), 200


# --- DETAIL ---
@events_bp.route("/<event_id>", methods=["GET"])
def get_event(event_id: str) -> Tuple[Response, int]:
    """
    Get a single event with its organizer's name and email.

    Returns:
        200: Event object; `organizer` is null if the account is gone.
        404: Event not found.
        500: Database error.
    """
    oid = to_object_id(event_id)
    if not oid:
        return jsonify({"message": "Event not found"}), 404

    db = get_db()
    try:
        event = db.events.find_one({"_id": oid})
        if not event:
            return jsonify({"message": "Event not found"}), 404
        event["organizer"] = db.users.find_one({"_id": event.get("organizer")}, {"name": 1, "email": 1})
    except PyMongoError:
        logging.exception(f"[Events] Failed to fetch event {event_id}")
        return jsonify({"message": "Server error"}), 500

    return jsonify(serialize_event(event)), 200


# --- UPDATE ---
@events_bp.route("/<event_id>", methods=["PUT"])
@login_required
def update_event(event_id: str) -> Tuple[Response, int]:
    """
    Update an event. Only its organizer may do this.

    Returns:
        200: The updated event.
        400: No writable fields, an emptied required field, or bad date.
        401: Not logged in, or not the owner.
        404: Event not found.
        500: Database error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        event, err, code = _load_owned_event(event_id)
        if err:
            return err, code

        if not isinstance(data, dict):
            return jsonify({"message": "Invalid input"}), 400
        fields = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        if not fields:
            return jsonify({"message": "No valid fields provided"}), 400

        cleared = [f for f in REQUIRED_FIELDS if f in fields and not fields[f]]
        if cleared:
            return jsonify({"message": f"Required fields cannot be empty: {', '.join(cleared)}"}), 400

        if "date" in fields:
            fields["date"] = parse_dt(fields["date"])
            if not fields["date"]:
                return jsonify({"message": "Invalid date format. Use ISO-8601."}), 400

        fields["updatedAt"] = datetime.now(timezone.utc)
        updated = get_db().events.find_one_and_update(
            {"_id": event["_id"]},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError:
        logging.exception(f"[Events] Failed to update event {event_id}")
        return jsonify({"message": "Server error"}), 500

    if not updated:
        return jsonify({"message": "Event not found"}), 404

    return jsonify(serialize_event(updated)), 200


# --- DELETE ---
@events_bp.route("/<event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: str) -> Tuple[Response, int]:
    """
    Delete an event. Only its organizer may do this.

    Returns:
        200: {"message": "Event removed"}
        401: Not logged in, or not the owner.
        404: Event not found.
        500: Database error.
    """
    try:
        event, err, code = _load_owned_event(event_id)
        if err:
            return err, code
        get_db().events.delete_one({"_id": event["_id"]})
    except PyMongoError:
        logging.exception(f"[Events] Failed to delete event {event_id}")
        return jsonify({"message": "Server error"}), 500

    return jsonify({"message": "Event removed"}), 200
