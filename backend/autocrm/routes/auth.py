# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/autocrm/routes/auth.py
"""
Authentication API routes

- POST /api/auth/register - create a USER account and open a session
- POST /api/auth/login    - authenticate and open a session
- POST /api/auth/logout   - revoke the current session
- GET  /api/auth/me       - current user

Register and login both answer {token, user: {id, email, role}}.
The token must be sent as "Authorization: Bearer <token>" on protected routes.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..validation import ValidationError, ConflictError, require_payload
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "token": token,
        "user": user.to_public_dict(),
        "expires_at": session.to_dict()["expires_at"],
    }), status


@auth_bp.post("/register")
def register_route():
    """
    Self-registration. New accounts always get the USER role.

    Error responses:
        400: Missing email/password, weak password, malformed email
        409: Email already registered
    """
    try:
        data = require_payload(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "Email and password required"}), 400

        user = auth_service.register_user(email, password)
        current_app.logger.info("Registered user %s", user.id)
        return _session_response(user, 201)

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Registration failed"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Deactivated accounts get the same 401 as a wrong password.
    """
    try:
        data = require_payload(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "Email and password required"}), 400

        user = auth_service.authenticate(email, password)

        if not user:
            current_app.logger.info("Failed login attempt from %s", request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        return _session_response(user, 200)

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Login failed"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """
    Revoke session token (logout).
    """
    try:
        session_service.revoke_session(g.token, reason="User logout")
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
