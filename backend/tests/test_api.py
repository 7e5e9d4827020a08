# Overview: End-to-end HTTP tests for the AutoCRM API.

"""
API flow tests.

Drives the JSON API the way the front end does: register/login, create a
car, rent it, complete the rental, dismantle another car, sell a part and
read the dashboard and ledger back.
"""

import pytest

from autocrm.models import Transaction


class TestAuthFlow:

    def test_register_returns_session(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": " New@WGAuto.com ", "password": "secret123"})

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["email"] == "new@wgauto.com"
        assert body["user"]["role"] == "USER"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["email"] == "new@wgauto.com"

    def test_register_duplicate_email(self, client, user_a):
        resp = client.post("/api/auth/register", json={"email": "alice@wgauto.com", "password": "secret123"})
        assert resp.status_code == 409

    def test_register_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "x@wgauto.com", "password": "short"})
        assert resp.status_code == 400

    def test_register_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "x@wgauto.com"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("path", ["/api/auth/register", "/api/auth/login"])
    def test_non_object_body_is_400(self, client, db_session, path):
        resp = client.post(path, json=["x"])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid JSON payload"

    def test_login(self, client, user_a):
        resp = client.post("/api/auth/login", json={"email": "ALICE@wgauto.com", "password": "Password123"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == user_a.id

    def test_login_wrong_password(self, client, user_a):
        resp = client.post("/api/auth/login", json={"email": "alice@wgauto.com", "password": "WrongPass1"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"


class TestCarRoutes:

    def test_create_and_list(self, client, headers_a, headers_b):
        resp = client.post(
            "/api/cars",
            json={"brand": "Ford", "model": "Focus", "price": 4200.5, "currency": "usd", "year": 2014},
            headers=headers_a,
        )
        assert resp.status_code == 201
        car = resp.get_json()
        assert car["status"] == "active"
        assert car["price_cents"] == 420050
        assert car["currency"] == "USD"

        assert [c["id"] for c in client.get("/api/cars", headers=headers_a).get_json()] == [car["id"]]
        assert client.get("/api/cars", headers=headers_b).get_json() == []

    def test_create_validation(self, client, headers_a):
        resp = client.post("/api/cars", json={"brand": "Ford"}, headers=headers_a)
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_foreign_car_details_is_404(self, client, headers_a, user_b, make_car):
        car = make_car(user_b)
        resp = client.get(f"/api/cars/{car.id}/details", headers=headers_a)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Car not found"

    def test_expense_and_details(self, client, headers_a, user_a, make_car):
        car = make_car(user_a)

        resp = client.post(
            f"/api/cars/{car.id}/expense",
            json={"amount": "99.99", "currency": "USD", "category": "insurance", "description": "Yearly"},
            headers=headers_a,
        )
        assert resp.status_code == 201
        assert resp.get_json()["transaction"]["amount_cents"] == 9999

        details = client.get(f"/api/cars/{car.id}/details", headers=headers_a).get_json()
        assert details["profitability"][0]["net_profit_cents"] == -9999

    def test_expense_bad_category(self, client, headers_a, user_a, make_car):
        car = make_car(user_a)
        resp = client.post(
            f"/api/cars/{car.id}/expense",
            json={"amount": "10", "currency": "USD", "category": "coffee"},
            headers=headers_a,
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("amount", ["1e999999", "12345678901234567890123456789.123"])
    def test_expense_huge_amount_is_400(self, client, headers_a, user_a, make_car, amount):
        car = make_car(user_a)
        resp = client.post(
            f"/api/cars/{car.id}/expense",
            json={"amount": amount, "currency": "USD", "category": "repair"},
            headers=headers_a,
        )
        assert resp.status_code == 400
        assert "cannot exceed" in resp.get_json()["error"]

    def test_dismantle_twice(self, client, headers_a, user_a, make_car):
        car = make_car(user_a)
        assert client.post(f"/api/cars/{car.id}/dismantle", headers=headers_a).status_code == 200
        assert client.post(f"/api/cars/{car.id}/dismantle", headers=headers_a).status_code == 409


class TestRentalRoutes:

    def _rent(self, client, headers, car_id, **overrides):
        payload = {
            "car_id": car_id,
            "client_name": "Maria",
            "start_date": "2024-01-10",
            "end_date": "2024-01-12",
            "daily_price": 100,
            "currency": "USD",
        }
        payload.update(overrides)
        return client.post("/api/rentals", json=payload, headers=headers)

    def test_full_rental_cycle(self, client, db_session, headers_a, user_a, make_car):
        car = make_car(user_a)

        resp = self._rent(client, headers_a, car.id)
        assert resp.status_code == 201
        rental = resp.get_json()
        assert rental["total_amount_cents"] == 30000

        assert self._rent(client, headers_a, car.id).status_code == 409

        resp = client.post(f"/api/rentals/{rental['id']}/complete", headers=headers_a)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["rental"]["status"] == "completed"
        assert body["transaction"]["amount_cents"] == 30000
        assert body["transaction"]["category"] == "rental"

        again = client.post(f"/api/rentals/{rental['id']}/complete", headers=headers_a)
        assert again.status_code == 409
        assert db_session.query(Transaction).filter_by(rental_id=rental["id"]).count() == 1

        cars = client.get("/api/cars", headers=headers_a).get_json()
        assert cars[0]["status"] == "active"

    def test_bad_dates(self, client, headers_a, user_a, make_car):
        car = make_car(user_a)
        resp = self._rent(client, headers_a, car.id, start_date="2024-01-12", end_date="2024-01-10")
        assert resp.status_code == 400

    def test_foreign_car_is_404(self, client, headers_a, user_b, make_car):
        car = make_car(user_b)
        assert self._rent(client, headers_a, car.id).status_code == 404

    def test_list_and_calendar(self, client, headers_a, user_a, make_car):
        car = make_car(user_a, brand="Kia")
        self._rent(client, headers_a, car.id, start_date="2024-01-30", end_date="2024-02-02")

        listed = client.get("/api/rentals?status=active", headers=headers_a).get_json()
        assert listed[0]["brand"] == "Kia"

        cal = client.get("/api/rentals/calendar/2024/2", headers=headers_a).get_json()
        assert cal["year"] == 2024 and cal["month"] == 2
        assert len(cal["rentals"]) == 1
        assert cal["daily_counts"]["2024-02-02"] == 1

        empty = client.get("/api/rentals/calendar/2024/4", headers=headers_a).get_json()
        assert empty["rentals"] == []

    def test_calendar_invalid_month(self, client, headers_a):
        assert client.get("/api/rentals/calendar/2024/13", headers=headers_a).status_code == 400

    def test_list_bad_status(self, client, headers_a):
        assert client.get("/api/rentals?status=pending", headers=headers_a).status_code == 400


class TestPartsAndLedger:

    def test_dismantle_then_sell_part(self, client, headers_a, user_a, make_car):
        car = make_car(user_a, brand="Opel", model="Astra")

        resp = client.post("/api/parts", json={"car_id": car.id, "name": "Door", "currency": "EUR"}, headers=headers_a)
        assert resp.status_code == 409

        client.post(f"/api/cars/{car.id}/dismantle", headers=headers_a)
        resp = client.post(
            "/api/parts",
            json={"car_id": car.id, "name": "Door", "currency": "EUR", "estimated_price": "120"},
            headers=headers_a,
        )
        assert resp.status_code == 201
        part = resp.get_json()

        resp = client.post(f"/api/parts/{part['id']}/sell", json={"sale_price": "110", "buyer": "Ivan"}, headers=headers_a)
        assert resp.status_code == 200
        assert resp.get_json()["part"]["status"] == "sold"
        assert resp.get_json()["transaction"]["currency"] == "EUR"

        again = client.post(f"/api/parts/{part['id']}/sell", json={"sale_price": "110"}, headers=headers_a)
        assert again.status_code == 409

        parts = client.get("/api/parts?search=astra", headers=headers_a).get_json()
        assert parts[0]["model"] == "Astra"

        ledger = client.get(f"/api/transactions?car_id={car.id}&type=income", headers=headers_a).get_json()
        assert len(ledger) == 1
        assert ledger[0]["amount_cents"] == 11000

        dashboard = client.get("/api/stats/dashboard", headers=headers_a).get_json()
        assert dashboard["income"] == [{"currency": "EUR", "total_cents": 11000}]
        assert dashboard["cars"] == [{"status": "dismantled", "count": 1}]

    def test_sell_zero_price(self, client, headers_a, user_a, scope_a, make_car):
        from autocrm.services import car_service, parts_service

        car = make_car(user_a)
        car_service.dismantle_car(scope_a, car.id)
        part = parts_service.create_part(scope_a, user_a, car_id=car.id, name="Seat", currency="USD")

        resp = client.post(f"/api/parts/{part.id}/sell", json={"sale_price": 0}, headers=headers_a)
        assert resp.status_code == 400

    def test_transaction_filters_validated(self, client, headers_a):
        assert client.get("/api/transactions?type=refund", headers=headers_a).status_code == 400
        assert client.get("/api/transactions?limit=0", headers=headers_a).status_code == 400
        assert client.get("/api/transactions?car_id=abc", headers=headers_a).status_code == 400


class TestSystem:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_cors_header_for_allowed_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"

        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers

    def test_health_ledger_probe_flags_unbooked_completion(self, client, db_session, user_a, scope_a, make_car, make_rental):
        rental = make_rental(scope_a, user_a, make_car(user_a))
        rental.status = "completed"
        db_session.commit()

        body = client.get("/health").get_json()
        assert body["status"] == "degraded"
        assert body["checks"]["ledger"]["details"]["completed_rentals_without_income"] == 1

    def test_version(self, client):
        body = client.get("/version").get_json()
        assert body["api_version"] == "1.0.0"
        assert "server_time" in body
