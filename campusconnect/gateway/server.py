"""
API gateway: combines the auth, events, users and admin blueprints.
This is the local entrypoint for development.
"""

import logging
from datetime import timedelta
from typing import Optional, Type

import click
from flask import Flask, jsonify
from flask_cors import CORS
from pymongo.database import Database
from werkzeug.exceptions import HTTPException

from campusconnect.admin_service.routes import admin_bp
from campusconnect.auth_service.routes import auth_bp
from campusconnect.auth_service.utils import TOKENS_EXTENSION_KEY, TokenService
from campusconnect.database.db_connection import DB_EXTENSION_KEY, connect
from campusconnect.database.init_db import ensure_indexes, promote_admin
from campusconnect.events_service.routes import events_bp
from campusconnect.gateway.config import Config
from campusconnect.users_service.routes import users_bp

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def create_app(config: Optional[Type[Config]] = None, db: Optional[Database] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        config: Config class to load; defaults to the environment-backed Config.
        db: Database handle to use instead of connecting to MONGO_URI.

    Returns:
        Flask: The configured Flask application.

    Raises:
        RuntimeError: If JWT_SECRET is not configured.
    """
    app = Flask(__name__)
    app.config.from_object(config or Config)

    secret = app.config.get("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET is missing. Set it in .env")

    app.extensions[TOKENS_EXTENSION_KEY] = TokenService(
        secret, expires_in=timedelta(minutes=app.config["TOKEN_EXPIRATION_MINUTES"])
    )
    app.extensions[DB_EXTENSION_KEY] = (
        db if db is not None else connect(app.config["MONGO_URI"], app.config["MONGO_DB_NAME"])
    )

    CORS(app, resources={
        r"/api/*": {
            "origins": app.config["CORS_ORIGINS"],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    logging.info("All blueprints registered successfully.")

    # --- JSON ERRORS ---
    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def unhandled_error(error: Exception):
        logging.exception("Unhandled error")
        return jsonify({"message": "Server error"}), 500

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"message": "Welcome to Campus Connect API"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    # --- CLI ---
    @app.cli.command("init-db")
    @click.option("--promote-admin", "admin_email", default=None, help="Email of an existing user to make admin.")
    def init_db_command(admin_email):
        """Create indexes and optionally promote an admin."""
        db_handle = app.extensions[DB_EXTENSION_KEY]
        ensure_indexes(db_handle)
        click.echo("Indexes ensured.")
        if admin_email:
            user = promote_admin(db_handle, admin_email)
            if not user:
                raise click.ClickException(f"No user with email {admin_email}")
            click.echo(f"Promoted {user['email']} to admin.")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=True)
