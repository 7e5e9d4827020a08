# Overview: Car Lifecycle Manager; car creation, expenses, dismantling and per-car profitability.

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func, or_, cast, String

from ..extensions import db
from ..models import Car, Rental, Part, Transaction, CAR_STATUSES
from .concurrency import run_atomic
from .ledger_service import append_transaction, EXPENSE_CATEGORIES
from .scope_service import AccessScope, get_in_scope
from .state_machine import CAR_MACHINE, apply_transition
from autocrm.validation import (
    ValidationError,
    require_text,
    optional_text,
    parse_int,
    parse_amount_cents,
    parse_positive_amount_cents,
    parse_currency,
    parse_choice,
)


def create_car(
    owner,
    *,
    brand,
    model,
    price,
    currency,
    year=None,
    vin=None,
) -> Car:
    """
    Register a newly acquired car; status starts as 'active'.

    brand, model, price and currency are mandatory. A non-positive price is
    accepted (the acquisition cost may be unknown or a write-off) but logged.
    """
    brand = require_text(brand, "brand", max_length=100)
    model = require_text(model, "model", max_length=100)
    price_cents = parse_amount_cents(price, "price")
    currency = parse_currency(currency)
    year = parse_int(year, "year")
    vin = optional_text(vin, "vin", max_length=50)

    if year is not None and not (1900 <= year <= 2100):
        raise ValidationError("year must be between 1900 and 2100")

    if price_cents <= 0:
        current_app.logger.warning(
            "Car created with non-positive price: owner=%s brand=%s model=%s price_cents=%s",
            owner.id, brand, model, price_cents,
        )

    car = Car(
        user_id=owner.id,
        brand=brand,
        model=model,
        year=year,
        vin=vin,
        price_cents=price_cents,
        currency=currency,
        status="active",
    )
    db.session.add(car)
    db.session.commit()
    return car


def list_cars(scope: AccessScope, *, search: str | None = None, status: str | None = None) -> list[Car]:
    """In-scope cars, newest first, optionally filtered by free text and status."""
    query = scope.apply(db.session.query(Car), Car)

    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Car.brand).like(pattern),
            func.lower(Car.model).like(pattern),
            func.lower(func.coalesce(Car.vin, "")).like(pattern),
            cast(Car.year, String).like(pattern),
        ))

    if status:
        status = parse_choice(status, "status", CAR_STATUSES)
        query = query.filter(Car.status == status)

    return query.order_by(Car.created_at.desc(), Car.id.desc()).all()


def get_car(scope: AccessScope, car_id: int) -> Car:
    return get_in_scope(Car, car_id, scope, label="Car")


def record_expense(
    scope: AccessScope,
    car_id: int,
    actor,
    *,
    amount,
    currency,
    category,
    description=None,
) -> Transaction:
    """
    Append an expense against a car. Car status is untouched.

    Raises:
        ValidationError: amount <= 0, bad currency, category not in EXPENSE_CATEGORIES
        NotFoundError: car missing or outside the caller's scope
    """
    amount_cents = parse_positive_amount_cents(amount, "amount")
    currency = parse_currency(currency)
    category = parse_choice(category, "category", EXPENSE_CATEGORIES)
    description = optional_text(description, "description") or ""

    car = get_car(scope, car_id)

    def _op():
        return append_transaction(
            car_id=car.id,
            owner_user_id=car.user_id,
            created_by_user_id=actor.id,
            type="expense",
            amount_cents=amount_cents,
            currency=currency,
            category=category,
            description=description,
        )

    return run_atomic(_op)


def dismantle_car(scope: AccessScope, car_id: int) -> Car:
    """
    active -> dismantled. Irreversible.

    A rented car cannot be dismantled (the car machine has no such edge);
    complete its rental first.
    """
    def _op():
        car = get_in_scope(Car, car_id, scope, for_update=True, label="Car")
        apply_transition(CAR_MACHINE, car, "dismantle")
        db.session.flush()
        return car

    car = run_atomic(_op)
    current_app.logger.info("Car %s dismantled", car.id)
    return car


def car_profitability(car_id: int) -> list[dict]:
    """
    One row per currency ever transacted on the car.

    net_profit_cents is derived here for convenience and never stored.
    """
    rows = db.session.query(
        Transaction.currency.label("currency"),
        func.coalesce(func.sum(case((Transaction.type == "income", Transaction.amount_cents), else_=0)), 0).label("total_income"),
        func.coalesce(func.sum(case((Transaction.type == "expense", Transaction.amount_cents), else_=0)), 0).label("total_expenses"),
    ).filter(
        Transaction.car_id == car_id,
    ).group_by(Transaction.currency).order_by(Transaction.currency).all()

    return [
        {
            "currency": row.currency,
            "total_income_cents": int(row.total_income or 0),
            "total_expenses_cents": int(row.total_expenses or 0),
            "net_profit_cents": int(row.total_income or 0) - int(row.total_expenses or 0),
        }
        for row in rows
    ]


def get_car_details(scope: AccessScope, car_id: int) -> dict:
    """
    Car plus its ledger, rentals, parts and per-currency profitability.

    Transactions and rentals are newest first.
    """
    car = get_car(scope, car_id)

    transactions = db.session.query(Transaction).filter(
        Transaction.car_id == car.id,
    ).order_by(Transaction.occurred_at.desc(), Transaction.id.desc()).all()

    rentals = db.session.query(Rental).filter(
        Rental.car_id == car.id,
    ).order_by(Rental.created_at.desc(), Rental.id.desc()).all()

    parts = db.session.query(Part).filter(
        Part.car_id == car.id,
    ).order_by(Part.created_at.desc(), Part.id.desc()).all()

    return {
        "car": car.to_dict(),
        "transactions": [t.to_dict() for t in transactions],
        "rentals": [r.to_dict() for r in rentals],
        "parts": [p.to_dict() for p in parts],
        "profitability": car_profitability(car.id),
    }
