"""
MongoDB connection helper.
Provides connect() for the application factory and get_db() for services.
"""

import logging

from flask import current_app
from pymongo import MongoClient
from pymongo.database import Database

# Key under which the app factory stores the database handle
DB_EXTENSION_KEY = "campusconnect.db"


def connect(uri: str, db_name: str) -> Database:
    """
    Returns a database handle backed by a new MongoClient.

    The client connects lazily, so building it does not require the server
    to be reachable yet. Datetimes come back timezone-aware (UTC).

    Args:
        uri (str): MongoDB connection string.
        db_name (str): Name of the database to use.

    Returns:
        pymongo.database.Database: The database handle.
    """
    client = MongoClient(uri, tz_aware=True)
    logging.info(f"[DB] MongoDB client created for database '{db_name}'")
    return client[db_name]


def get_db() -> Database:
    """
    Returns the database bound to the running Flask application.

    Usage:
        db = get_db()
        user = db.users.find_one({"email": email})

    Raises:
        RuntimeError: If called outside an application context.
    """
    return current_app.extensions[DB_EXTENSION_KEY]
