from flask import Blueprint, jsonify, g, current_app

from ..decorators import require_auth
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/stats")


@dashboard_bp.get("/dashboard")
@require_auth
def dashboard_route():
    try:
        return jsonify(dashboard_service.get_dashboard(g.scope)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch dashboard data")
        return jsonify({"error": "Failed to fetch dashboard data"}), 500
