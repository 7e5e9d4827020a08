# Overview: Dashboard Aggregator; all-time per-currency totals and fleet counts within scope.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Car, Rental, Transaction
from .scope_service import AccessScope


def _totals_by_currency(scope: AccessScope, tx_type: str) -> list[dict]:
    query = db.session.query(
        Transaction.currency.label("currency"),
        func.coalesce(func.sum(Transaction.amount_cents), 0).label("total"),
    ).filter(Transaction.type == tx_type)
    rows = scope.apply(query, Transaction).group_by(Transaction.currency).order_by(Transaction.currency).all()
    return [{"currency": row.currency, "total_cents": int(row.total or 0)} for row in rows]


def _cars_by_status(scope: AccessScope) -> list[dict]:
    query = db.session.query(Car.status.label("status"), func.count(Car.id).label("count"))
    rows = scope.apply(query, Car).group_by(Car.status).order_by(Car.status).all()
    return [{"status": row.status, "count": int(row.count)} for row in rows]


def _active_rentals(scope: AccessScope) -> int:
    query = db.session.query(func.count(Rental.id)).filter(Rental.status == "active")
    return int(scope.apply(query, Rental).scalar() or 0)


def get_dashboard(scope: AccessScope) -> dict:
    """
    All-time aggregates for the caller's scope.

    income/expenses hold at most one entry per currency; amounts in
    different currencies are never combined.
    """
    return {
        "income": _totals_by_currency(scope, "income"),
        "expenses": _totals_by_currency(scope, "expense"),
        "cars": _cars_by_status(scope),
        "active_rentals": _active_rentals(scope),
    }
