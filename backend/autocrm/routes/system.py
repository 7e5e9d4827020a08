# backend/autocrm/routes/system.py
"""
System health and version endpoints.

/health runs three probes:
- database: the store answers and row counts per table
- sessions: the session table is readable
- ledger: every completed rental and sold part has its income row

Any unhealthy probe turns the response into 503. A ledger mismatch is
reported as "degraded" (200) so it shows up on dashboards without taking
the API out of a load balancer.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy import and_

from ..extensions import db
from ..models import User, Car, Rental, Part, Transaction, SessionToken
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def _timed(probe, label: str) -> dict:
    start_time = time.time()
    try:
        result = probe()
    except Exception:
        current_app.logger.exception("%s health check failed", label)
        result = {"status": "unhealthy", "error": f"{label} error"}
    result["latency_ms"] = round((time.time() - start_time) * 1000, 2)
    return result


def _database_probe() -> dict:
    return {
        "status": "healthy",
        "details": {
            "users": db.session.query(User).count(),
            "cars": db.session.query(Car).count(),
            "rentals": db.session.query(Rental).count(),
            "parts": db.session.query(Part).count(),
            "transactions": db.session.query(Transaction).count(),
        },
    }


def _session_probe() -> dict:
    live = db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False))
    return {
        "status": "healthy",
        "details": {
            "active_sessions": live.count(),
            "expired_pending_cleanup": live.filter(SessionToken.expires_at < utcnow()).count(),
        },
    }


def _ledger_probe() -> dict:
    unbooked_rentals = db.session.query(Rental).outerjoin(
        Transaction, and_(Transaction.rental_id == Rental.id, Transaction.type == "income")
    ).filter(Rental.status == "completed", Transaction.id.is_(None)).count()

    unbooked_parts = db.session.query(Part).outerjoin(
        Transaction, and_(Transaction.part_id == Part.id, Transaction.type == "income")
    ).filter(Part.status == "sold", Transaction.id.is_(None)).count()

    result = {
        "status": "healthy",
        "details": {
            "completed_rentals_without_income": unbooked_rentals,
            "sold_parts_without_income": unbooked_parts,
        },
    }
    if unbooked_rentals or unbooked_parts:
        result["status"] = "degraded"
        result["warning"] = "Income rows missing for completed rentals or sold parts"
    return result


@system_bp.get("/health")
def health():
    start_time = time.time()

    checks = {
        "database": _timed(_database_probe, "Database"),
        "session_service": _timed(_session_probe, "Session service"),
        "ledger": _timed(_ledger_probe, "Ledger"),
    }

    statuses = {check["status"] for check in checks.values()}
    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info; no secrets, credentials or paths."""
    return {
        "api_version": "1.0.0",
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
