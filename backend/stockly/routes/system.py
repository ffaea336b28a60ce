# backend/stockly/routes/system.py
"""
System health endpoint.

Checks database connectivity and the backups directory so a deployment can
tell whether exports will succeed before anyone needs one.
"""

import os
import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import Client, Invoice, Item
from ..services.backup_service import is_backup_running
from stockly.time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "items": db.session.query(Item).count(),
            "clients": db.session.query(Client).count(),
            "invoices": db.session.query(Invoice).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


def check_backup_storage_health() -> dict:
    """Backups directory must exist (or be creatable) and be writable."""
    directory = current_app.config.get("BACKUP_DIR")
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError:
        current_app.logger.exception("Backup directory check failed")
        return {"status": "unhealthy", "error": "Backup directory unavailable"}

    if not os.access(directory, os.W_OK):
        return {"status": "degraded", "warning": "Backup directory is not writable"}

    return {
        "status": "healthy",
        "details": {"backup_in_progress": is_backup_running()},
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    storage_health = check_backup_storage_health()

    all_checks = [database_health, storage_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "version": current_app.config.get("APP_VERSION"),
        "checks": {
            "database": database_health,
            "backup_storage": storage_health,
        },
    }
    return response, http_status
