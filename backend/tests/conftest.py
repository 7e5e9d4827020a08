"""
Pytest fixtures for AutoCRM backend tests.

Provides test database setup, two regular users plus an admin, session
tokens for each, and small factories for cars and rentals.
"""

import pytest
from autocrm import create_app
from autocrm.config import TestingConfig
from autocrm.extensions import db
from autocrm.models import User, ROLE_USER, ROLE_ADMIN
from autocrm.services.auth_service import hash_password
from autocrm.services.session_service import create_session
from autocrm.services.scope_service import resolve_scope
from autocrm.services import car_service, rental_service


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, email: str, role: str) -> User:
    user = User(
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_a(db_session):
    """Regular USER account A."""
    return _make_user(db_session, "alice@wgauto.com", ROLE_USER)


@pytest.fixture(scope='function')
def user_b(db_session):
    """Regular USER account B."""
    return _make_user(db_session, "bob@wgauto.com", ROLE_USER)


@pytest.fixture(scope='function')
def admin(db_session):
    """ADMIN account (sees every row)."""
    return _make_user(db_session, "admin@wgauto.com", ROLE_ADMIN)


@pytest.fixture(scope='function')
def scope_a(user_a):
    return resolve_scope(user_a)


@pytest.fixture(scope='function')
def scope_b(user_b):
    return resolve_scope(user_b)


@pytest.fixture(scope='function')
def admin_scope(admin):
    return resolve_scope(admin)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(user_a):
    _, token = create_session(user_id=user_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(user_b):
    _, token = create_session(user_id=user_b.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(admin):
    _, token = create_session(user_id=admin.id)
    return auth_headers(token)


def _make_car(owner, **overrides):
    fields = {
        "brand": "Toyota",
        "model": "Corolla",
        "price": "5000.00",
        "currency": "USD",
        "year": 2015,
    }
    fields.update(overrides)
    return car_service.create_car(owner, **fields)


def _make_rental(scope, actor, car, start="2024-01-10", end="2024-01-12", daily_price="100", currency="USD"):
    return rental_service.create_rental(
        scope,
        actor,
        car_id=car.id,
        client_name="John Client",
        client_phone="+10000000000",
        start_date=start,
        end_date=end,
        daily_price=daily_price,
        currency=currency,
    )


@pytest.fixture(scope='function')
def make_car(db_session):
    """Factory: make_car(owner, **overrides) -> active Car."""
    return _make_car


@pytest.fixture(scope='function')
def make_rental(db_session):
    """Factory: make_rental(scope, actor, car, start=..., end=...) -> active Rental."""
    return _make_rental
