# Overview: Health endpoint for the API and its storage backend.

import time

from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import User
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"users": user_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    """
    Returns 200 when the database answers, 503 otherwise.

    The storage mode is reported so a client knows whether records live in
    the database or in local JSON files.
    """
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "storage": current_app.config.get("BIZBOOKS_STORAGE"),
        "checks": {"database": database},
    }
    return jsonify(body), (200 if healthy else 503)
