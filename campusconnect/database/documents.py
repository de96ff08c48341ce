"""
Helpers for turning MongoDB documents into JSON-safe dicts.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: Any) -> Optional[ObjectId]:
    """
    Parse a path parameter or payload value into an ObjectId.

    Returns:
        ObjectId, or None if the value is not a valid 24-char hex id.
    """
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def serialize_doc(doc: Optional[Dict[str, Any]], exclude: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
    """
    Convert a document to a dict jsonify() can handle.

    ObjectIds become hex strings and datetimes ISO-8601 strings, at any depth.
    Top-level keys listed in `exclude` are dropped.
    """
    if doc is None:
        return None
    skip = set(exclude)
    return {k: _jsonable(v) for k, v in doc.items() if k not in skip}


def serialize_docs(docs: Iterable[Dict[str, Any]], exclude: Iterable[str] = ()) -> List[Dict[str, Any]]:
    exclude = tuple(exclude)
    return [serialize_doc(d, exclude) for d in docs]
