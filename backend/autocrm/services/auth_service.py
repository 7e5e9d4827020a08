# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Credential Service

WHY: Every car, rental, part and transaction is owned by a user, so every
action must be attributable to an authenticated account.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Emails are normalized (trimmed, lower-cased) and globally unique
- Session tokens managed separately (see session_service.py)
- Deactivated accounts cannot authenticate
"""

import re

import bcrypt

from ..extensions import db
from ..models import User, ROLE_USER, ROLE_ADMIN, VALID_ROLES
from autocrm.time_utils import utcnow
from autocrm.validation import ConflictError, ValidationError


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str | None) -> str:
    if email is None or not str(email).strip():
        raise ValidationError("Email is required")
    normalized = str(email).strip().lower()
    if not _EMAIL_RE.match(normalized):
        raise ValidationError("Email address is not valid")
    return normalized


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not password:
        raise PasswordValidationError("Password is required")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(email: str, password: str, role: str = ROLE_USER) -> User:
    """
    Create new user with bcrypt password hashing.

    Args:
        email: Login email (normalized, must be unique)
        password: Password meeting strength requirements
        role: USER (default) or ADMIN

    Returns:
        Created User object

    Raises:
        ValidationError: malformed email or unknown role
        PasswordValidationError: If password doesn't meet requirements
        ConflictError: If the email is already registered
    """
    email = normalize_email(email)
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(VALID_ROLES)}")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ConflictError("User already exists")

    # Hash password with bcrypt (validates strength automatically)
    password_hash = hash_password(password)

    user = User(
        email=email,
        password_hash=password_hash,
        role=role,
        is_active=True,
    )

    db.session.add(user)
    db.session.commit()
    return user


def register_user(email: str, password: str) -> User:
    """Self-registration always produces a USER account."""
    return create_user(email, password, role=ROLE_USER)


def create_admin(email: str, password: str) -> User:
    return create_user(email, password, role=ROLE_ADMIN)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None otherwise.
    Updates last_login_at timestamp on successful authentication.

    WHY: Central authentication function. All login flows go through here.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(
        User.email == str(email).strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
