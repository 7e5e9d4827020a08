"""
Authorization tests for AutoCRM.

Verifies:
- Unauthenticated requests return 401
- Revoked, garbage and deactivated-user tokens return 401
- USER role denied admin operations (403)
- Admin role can perform privileged operations
"""

import pytest

from autocrm.services.session_service import create_session


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/stats/dashboard"),
            ("GET", "/api/cars"),
            ("POST", "/api/cars"),
            ("GET", "/api/cars/1/details"),
            ("POST", "/api/cars/1/expense"),
            ("POST", "/api/cars/1/dismantle"),
            ("GET", "/api/rentals"),
            ("POST", "/api/rentals"),
            ("POST", "/api/rentals/1/complete"),
            ("GET", "/api/rentals/calendar/2024/2"),
            ("GET", "/api/parts"),
            ("POST", "/api/parts"),
            ("POST", "/api/parts/1/sell"),
            ("GET", "/api/transactions"),
            ("GET", "/api/admin/users"),
            ("PUT", "/api/admin/users/1/toggle"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["error"] == "Authentication required"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/cars", headers={"Authorization": "Bearer not-a-real-token"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid or expired token"

    def test_non_bearer_scheme(self, client, db_session):
        resp = client.get("/api/cars", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    def test_logged_out_token_rejected(self, client, headers_a):
        assert client.post("/api/auth/logout", headers=headers_a).status_code == 200
        assert client.get("/api/auth/me", headers=headers_a).status_code == 401


# =============================================================================
# USER DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestUserDeniedAdmin:

    def test_cannot_list_users(self, client, headers_a):
        resp = client.get("/api/admin/users", headers=headers_a)
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Admin access required"

    def test_cannot_toggle_users(self, client, headers_a, user_b):
        resp = client.put(f"/api/admin/users/{user_b.id}/toggle", headers=headers_a)
        assert resp.status_code == 403


# =============================================================================
# ADMIN OPERATIONS
# =============================================================================


class TestAdminUserManagement:

    def test_list_users(self, client, admin_headers, user_a, user_b):
        resp = client.get("/api/admin/users", headers=admin_headers)
        assert resp.status_code == 200
        emails = {u["email"] for u in resp.get_json()}
        assert {"alice@wgauto.com", "bob@wgauto.com", "admin@wgauto.com"} <= emails
        assert all("password_hash" not in u for u in resp.get_json())

    def test_deactivate_revokes_sessions(self, client, admin_headers, user_a, headers_a):
        resp = client.put(f"/api/admin/users/{user_a.id}/toggle", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["is_active"] is False

        # Existing token stops working immediately
        assert client.get("/api/cars", headers=headers_a).status_code == 401

        # And the account can no longer log in
        resp = client.post("/api/auth/login", json={"email": "alice@wgauto.com", "password": "Password123"})
        assert resp.status_code == 401

    def test_reactivate(self, client, admin_headers, user_a):
        client.put(f"/api/admin/users/{user_a.id}/toggle", headers=admin_headers)
        resp = client.put(f"/api/admin/users/{user_a.id}/toggle", headers=admin_headers)
        assert resp.get_json()["user"]["is_active"] is True

        resp = client.post("/api/auth/login", json={"email": "alice@wgauto.com", "password": "Password123"})
        assert resp.status_code == 200

    def test_cannot_deactivate_self(self, client, admin, admin_headers):
        resp = client.put(f"/api/admin/users/{admin.id}/toggle", headers=admin_headers)
        assert resp.status_code == 409

    def test_toggle_unknown_user(self, client, admin_headers):
        resp = client.put("/api/admin/users/999999/toggle", headers=admin_headers)
        assert resp.status_code == 404

    def test_token_of_deactivated_user_created_after_toggle_rejected(self, client, admin_headers, user_a):
        client.put(f"/api/admin/users/{user_a.id}/toggle", headers=admin_headers)
        _, token = create_session(user_id=user_a.id)
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
