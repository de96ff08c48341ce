"""
Application configuration, read from the environment (and .env).
"""

import os

from dotenv import load_dotenv

# Load .env only once here
load_dotenv()


def _split_origins(value: str):
    origins = [o.strip() for o in value.split(",") if o.strip()]
    if origins == ["*"]:
        return "*"
    return origins


class Config:
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "campusconnect")

    JWT_SECRET = os.getenv("JWT_SECRET")
    TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 60))  # Default 1 hour

    CORS_ORIGINS = _split_origins(os.getenv("CORS_ORIGINS", "*"))

    PORT = int(os.getenv("PORT", 5000))
    TESTING = False
