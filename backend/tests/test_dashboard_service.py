# Overview: Pytest coverage for dashboard aggregates.

from autocrm.services import dashboard_service, car_service, rental_service


class TestDashboard:

    def test_empty(self, scope_a):
        assert dashboard_service.get_dashboard(scope_a) == {
            "income": [],
            "expenses": [],
            "cars": [],
            "active_rentals": 0,
        }

    def test_totals_grouped_by_currency(self, user_a, scope_a, make_car, make_rental):
        car = make_car(user_a)
        car_service.record_expense(scope_a, car.id, user_a, amount="40", currency="USD", category="repair")
        car_service.record_expense(scope_a, car.id, user_a, amount="2.50", currency="USD", category="parking")
        car_service.record_expense(scope_a, car.id, user_a, amount="15", currency="EUR", category="fuel")
        rental = make_rental(scope_a, user_a, car)
        rental_service.complete_rental(scope_a, user_a, rental.id)

        data = dashboard_service.get_dashboard(scope_a)

        assert data["income"] == [{"currency": "USD", "total_cents": 30000}]
        assert data["expenses"] == [
            {"currency": "EUR", "total_cents": 1500},
            {"currency": "USD", "total_cents": 4250},
        ]

    def test_fleet_counts(self, user_a, scope_a, make_car, make_rental):
        make_car(user_a)
        make_rental(scope_a, user_a, make_car(user_a))
        car_service.dismantle_car(scope_a, make_car(user_a).id)

        data = dashboard_service.get_dashboard(scope_a)

        assert data["cars"] == [
            {"status": "active", "count": 1},
            {"status": "dismantled", "count": 1},
            {"status": "rented", "count": 1},
        ]
        assert data["active_rentals"] == 1

    def test_scope_restricts_and_admin_sees_all(self, user_a, user_b, scope_a, scope_b, admin_scope, make_car):
        car_a = make_car(user_a)
        car_b = make_car(user_b)
        car_service.record_expense(scope_a, car_a.id, user_a, amount="10", currency="USD", category="wash")
        car_service.record_expense(scope_b, car_b.id, user_b, amount="25", currency="USD", category="wash")

        assert dashboard_service.get_dashboard(scope_a)["expenses"] == [{"currency": "USD", "total_cents": 1000}]
        assert dashboard_service.get_dashboard(scope_b)["expenses"] == [{"currency": "USD", "total_cents": 2500}]
        admin_view = dashboard_service.get_dashboard(admin_scope)
        assert admin_view["expenses"] == [{"currency": "USD", "total_cents": 3500}]
        assert admin_view["cars"] == [{"status": "active", "count": 2}]
