# Overview: Service-layer operations for admin user management.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User
from .concurrency import run_atomic
from .session_service import revoke_all_user_sessions
from autocrm.validation import ConflictError, NotFoundError, ForbiddenError


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def toggle_user_active(actor: User, user_id: int) -> User:
    """
    Flip a user's is_active flag.

    Deactivation revokes every open session so the change takes effect
    immediately. An admin cannot deactivate their own account.
    """
    if actor is None or not actor.is_admin:
        raise ForbiddenError("Admin access required")

    def _op():
        user = db.session.query(User).filter_by(id=user_id).first()
        if not user:
            raise NotFoundError("User not found")
        if user.id == actor.id:
            raise ConflictError("You cannot deactivate your own account")

        user.is_active = not user.is_active
        if not user.is_active:
            revoke_all_user_sessions(user.id, reason="User account deactivated", commit=False)
        return user

    user = run_atomic(_op)
    current_app.logger.info(
        "User %s %s by admin %s", user.id, "activated" if user.is_active else "deactivated", actor.id
    )
    return user
