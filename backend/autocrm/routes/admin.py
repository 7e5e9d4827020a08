# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/autocrm/routes/admin.py
"""
Admin routes for user management.

- GET /api/admin/users              - list all users
- PUT /api/admin/users/:id/toggle   - activate / deactivate a user

All endpoints require authentication AND the ADMIN role (403 otherwise).
"""

from flask import Blueprint, jsonify, g, current_app

from ..services import user_service
from ..validation import ConflictError, NotFoundError, ForbiddenError
from ..decorators import require_auth, require_admin

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_admin
def list_users():
    users = user_service.list_users()
    return jsonify([user.to_dict() for user in users])


@admin_bp.put("/users/<int:user_id>/toggle")
@require_auth
@require_admin
def toggle_user(user_id: int):
    """
    Flip is_active. Deactivation revokes the user's sessions immediately.

    Error responses:
        404: User not found
        409: Admin tried to deactivate their own account
    """
    try:
        user = user_service.toggle_user_active(g.current_user, user_id)
        return jsonify({"success": True, "user": user.to_dict()}), 200
    except ForbiddenError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to toggle user status")
        return jsonify({"error": "Failed to toggle user status"}), 500
