# backend/barpos/routes/system.py
"""
System health and version endpoints.

Health is used by the load balancer and the deployment checks: 200 when
configuration and the database are usable, 503 otherwise.
"""

import sys
import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from ..config import ConfigurationError, validate_config
from ..extensions import db
from ..models import Transaction, Order, InventoryItem
from barpos.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

_STARTED_AT = time.time()


def check_config_health() -> dict:
    try:
        validate_config(current_app.config)
    except ConfigurationError as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


def check_database_health() -> dict:
    """
    Check database connectivity by counting the main sales tables.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "transactions": db.session.query(Transaction).count(),
            "orders": db.session.query(Order).count(),
            "inventory": db.session.query(InventoryItem).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    checks = {
        "config": check_config_health(),
        "database": check_database_health(),
    }
    ready = all(check["status"] == "healthy" for check in checks.values())

    response = jsonify({
        "success": ready,
        "status": "ok" if ready else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
        "meta": {
            "version": current_app.config.get("APP_VERSION", "unknown"),
            "environment": "development" if current_app.debug else "production",
            "python_version": sys.version.split()[0],
            "uptime_sec": int(time.time() - _STARTED_AT),
        },
    })
    return response, 200 if ready else 503
