# backend/bizbooks/config.py
from __future__ import annotations
import os


def _csv_env(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/bizbooks.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///bizbooks.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Record persistence: "sql" (database rows scoped per user) or "json"
    # (one local JSON file per user, the offline mode)
    BIZBOOKS_STORAGE = os.environ.get("BIZBOOKS_STORAGE", "sql").lower()
    BIZBOOKS_JSON_PATH = os.environ.get("BIZBOOKS_JSON_PATH", "instance/records")

    BIZBOOKS_LOG_LEVEL = os.environ.get("BIZBOOKS_LOG_LEVEL", "INFO").upper()

    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "2"))

    CORS_ALLOWED_ORIGINS = _csv_env(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    )
