"""
Database setup.

Creates the indexes the API relies on (unique email, the event text index
used by search) and can promote an existing account to admin, since the
API never lets anyone self-assign that role.

Usage:
    python -m campusconnect.database.init_db
    python -m campusconnect.database.init_db --promote-admin alice@example.edu
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from pymongo import ASCENDING, DESCENDING, TEXT, ReturnDocument
from pymongo.database import Database

from campusconnect.auth_service.models import PUBLIC_USER_PROJECTION, OrganizerStatus, Role


def ensure_indexes(db: Database) -> None:
    """Create required indexes. Safe to run repeatedly."""
    # Users
    db.users.create_index("email", unique=True)
    db.users.create_index("organizerStatus")

    # Events
    db.events.create_index(
        [("title", TEXT), ("description", TEXT), ("college", TEXT), ("category", TEXT)],
        name="event_text_search",
    )
    db.events.create_index([("organizer", ASCENDING), ("date", DESCENDING)])
    db.events.create_index("date")
    logging.info("[DB] Indexes ensured")


def promote_admin(db: Database, email: str) -> Optional[dict]:
    """
    Give an existing user the admin role.

    Returns:
        The updated user (no password), or None if no user has that email.
    """
    return db.users.find_one_and_update(
        {"email": email.strip().lower()},
        {"$set": {
            "role": Role.ADMIN.value,
            "organizerStatus": OrganizerStatus.NONE.value,
            "updatedAt": datetime.now(timezone.utc),
        }},
        projection=PUBLIC_USER_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )


def main(argv=None) -> int:
    from campusconnect.database.db_connection import connect
    from campusconnect.gateway.config import Config

    ap = argparse.ArgumentParser(description="Create indexes and optionally promote an admin.")
    ap.add_argument("--promote-admin", metavar="EMAIL", help="email of an existing user to make admin")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    db = connect(Config.MONGO_URI, Config.MONGO_DB_NAME)
    ensure_indexes(db)

    if args.promote_admin:
        user = promote_admin(db, args.promote_admin)
        if not user:
            logging.error(f"No user with email {args.promote_admin}")
            return 1
        logging.info(f"Promoted {user['email']} to admin")
    return 0


if __name__ == "__main__":
    sys.exit(main())
