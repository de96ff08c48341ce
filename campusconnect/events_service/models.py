"""
Event document helpers: validation constants, date parsing, and the
shape of documents in the `events` collection.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId

from campusconnect.database.documents import serialize_doc

REQUIRED_FIELDS = ["title", "description", "date", "venue", "college", "category"]
OPTIONAL_FIELDS = ["registrationLink"]

# Fields the owner may change through PUT. `organizer` is never writable.
UPDATABLE_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS


def parse_dt(val: Any) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 or datetime-local string to an aware datetime.

    Naive values are taken as server-local time.

    Returns:
        datetime: The parsed datetime, or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DDTHH:MM' and '...Z' or '...+00:00'
        if val.endswith("Z"):
            val = val[:-1] + "+00:00"
        dt = datetime.fromisoformat(val)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def missing_fields(data: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if not data.get(f)]


def new_event_document(data: Dict[str, Any], date: datetime, organizer_id: ObjectId) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    doc = {f: data[f] for f in REQUIRED_FIELDS}
    doc["date"] = date
    doc["registrationLink"] = data.get("registrationLink") or None
    doc["organizer"] = organizer_id
    doc["createdAt"] = now
    doc["updatedAt"] = now
    return doc


def serialize_event(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return serialize_doc(doc)
