"""
User model for the authentication service.

Defines the closed role/status enumerations and what a "user" document
looks like in the `users` collection.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from campusconnect.database.documents import serialize_doc


class Role(str, Enum):
    STUDENT = "student"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class OrganizerStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"


# Roles a user may ask for when registering. Admins are promoted offline.
SELF_SERVICE_ROLES = (Role.STUDENT, Role.ORGANIZER)

# Projection that keeps the password hash out of query results
PUBLIC_USER_PROJECTION = {"password": 0}


@dataclass(frozen=True)
class Identity:
    """The {id, role} pair carried inside a token."""

    id: str
    role: Role


def new_user_document(
    name: str,
    email: str,
    password_hash: str,
    college: Optional[str] = None,
    requested_role: Role = Role.STUDENT,
) -> Dict[str, Any]:
    """
    Build the document inserted at registration.

    Asking for the organizer role does not grant it: the user starts as a
    student with a pending application that an admin approves or rejects.
    """
    now = datetime.now(timezone.utc)
    status = OrganizerStatus.PENDING if requested_role is Role.ORGANIZER else OrganizerStatus.NONE
    return {
        "name": name,
        "email": email,
        "password": password_hash,
        "college": college,
        "role": Role.STUDENT.value,
        "organizerStatus": status.value,
        "savedEvents": [],
        "createdAt": now,
        "updatedAt": now,
    }


def public_user(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Serialize a user document for a response, never including the password."""
    return serialize_doc(doc, exclude=("password",))
