# Overview: Service-layer operations for session; opaque bearer tokens bound to a user and an access scope.

"""
Bearer Sessions

A session is an opaque random token handed to the client once; only its
SHA-256 digest is stored. validate_session() turns a presented token into
a SessionContext carrying the user and the AccessScope every service call
of the request is filtered by.

LIFETIME:
- 24 hours from login at most (SESSION_ABSOLUTE_TIMEOUT)
- 2 hours without a request (SESSION_IDLE_TIMEOUT) revokes it
- logout revokes one session, account deactivation revokes all of them
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from .scope_service import AccessScope, resolve_scope
from autocrm.time_utils import utcnow
from autocrm.validation import NotFoundError


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    scope: AccessScope


def generate_token() -> str:
    """64 hex characters; this is what the client sends back as the bearer token."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Open a session for a user after register/login.

    Returns (session_row, plaintext_token). The plaintext is never persisted.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, token


def _revoke(session: SessionToken, reason: str, now=None) -> None:
    session.is_revoked = True
    session.revoked_at = now or utcnow()
    session.revoked_reason = reason


def _find_live(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to (user, session, scope), or None.

    None means: unknown or revoked token, past its absolute expiry, idle too
    long (revoked here), or owned by a deactivated account (revoked here).
    A live session has last_used_at bumped.
    """
    if not token:
        return None

    session = _find_live(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout", now)
        db.session.commit()
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated", now)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session, scope=resolve_scope(user))


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns False when the token was unknown or already revoked."""
    session = _find_live(token)
    if session is None:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions", *, commit: bool = True) -> int:
    """
    Revoke every live session of a user; returns how many were revoked.

    Pass commit=False to fold the revocation into a caller's atomic unit
    (see user_service.toggle_user_active).
    """
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).all()

    for session in sessions:
        _revoke(session, reason, now)

    if commit:
        db.session.commit()
    return len(sessions)
