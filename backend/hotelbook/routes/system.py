# backend/hotelbook/routes/system.py
"""
System health endpoints.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }


@system_bp.get("/")
def index():
    return jsonify({"message": "Hotel booking API is running"})


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status = "ok" if database["status"] == "healthy" else "degraded"
    return jsonify({"status": status, "database": database}), 200 if status == "ok" else 503
