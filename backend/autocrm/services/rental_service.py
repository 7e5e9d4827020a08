# Overview: Rental Lifecycle Manager; rental creation, completion and calendar queries.

"""
Rental Lifecycle

STATE MACHINE (per rental):
    active -> completed   (terminal)

SIDE EFFECTS:
- create_rental:   car active -> rented
- complete_rental: rental active -> completed, ONE income transaction,
                   car rented -> active

Both multi-entity mutations run as a single DomainCommand inside
run_atomic(): either every statement lands or none does. A second (or
concurrent) completion is rejected by the rental state machine / version
check and never books a second income row.
"""

from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass
from datetime import date, timedelta

from flask import current_app

from ..extensions import db
from ..models import Car, Rental, Transaction, RENTAL_STATUSES
from .concurrency import DomainCommand, run_atomic, lock_for_update
from .ledger_service import append_transaction
from .scope_service import AccessScope, get_in_scope
from .state_machine import CAR_MACHINE, RENTAL_MACHINE, apply_transition
from autocrm.time_utils import utcnow
from autocrm.validation import (
    ValidationError,
    NotFoundError,
    require_text,
    optional_text,
    parse_date,
    parse_int,
    parse_positive_amount_cents,
    parse_currency,
    parse_choice,
)


def rental_days(start_date: date, end_date: date) -> int:
    """Inclusive day count: a same-day rental is one day."""
    if end_date < start_date:
        raise ValidationError("end_date must be on or after start_date")
    return (end_date - start_date).days + 1


def calculate_total_cents(start_date: date, end_date: date, daily_price_cents: int) -> int:
    return rental_days(start_date, end_date) * daily_price_cents


@dataclass
class CreateRentalCommand(DomainCommand):
    scope: AccessScope
    car_id: int
    client_name: str
    client_phone: str | None
    start_date: date
    end_date: date
    daily_price_cents: int
    currency: str

    def execute(self) -> Rental:
        car = get_in_scope(Car, self.car_id, self.scope, for_update=True, label="Car")
        apply_transition(CAR_MACHINE, car, "rent", message="Car is not available for rental")

        rental = Rental(
            car_id=car.id,
            user_id=car.user_id,
            client_name=self.client_name,
            client_phone=self.client_phone,
            start_date=self.start_date,
            end_date=self.end_date,
            daily_price_cents=self.daily_price_cents,
            currency=self.currency,
            total_amount_cents=calculate_total_cents(self.start_date, self.end_date, self.daily_price_cents),
            status="active",
        )
        db.session.add(rental)
        db.session.flush()
        return rental


@dataclass
class CompleteRentalCommand(DomainCommand):
    scope: AccessScope
    actor_id: int
    rental_id: int

    def execute(self) -> tuple[Rental, Transaction]:
        rental = get_in_scope(Rental, self.rental_id, self.scope, for_update=True, label="Rental")
        apply_transition(RENTAL_MACHINE, rental, "complete", message="Rental is already completed")
        rental.completed_at = utcnow()

        car = lock_for_update(db.session.query(Car).filter(Car.id == rental.car_id)).first()
        if car is None:
            raise NotFoundError("Car not found")

        tx = append_transaction(
            car_id=rental.car_id,
            owner_user_id=rental.user_id,
            created_by_user_id=self.actor_id,
            type="income",
            amount_cents=rental.total_amount_cents,
            currency=rental.currency,
            category="rental",
            description=f"Rental income from {rental.client_name}",
            rental_id=rental.id,
        )

        apply_transition(CAR_MACHINE, car, "return")
        db.session.flush()
        return rental, tx


def create_rental(
    scope: AccessScope,
    actor,
    *,
    car_id,
    client_name,
    start_date,
    end_date,
    daily_price,
    currency,
    client_phone=None,
) -> Rental:
    """
    Rent an active car.

    Raises:
        ValidationError: missing client, bad dates (end < start), daily_price <= 0
        NotFoundError: car missing or outside scope
        ConflictError: car is rented or dismantled
    """
    car_id = parse_int(car_id, "car_id", required=True)
    client_name = require_text(client_name, "client_name", max_length=200)
    client_phone = optional_text(client_phone, "client_phone", max_length=50)
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date")
    rental_days(start, end)
    daily_price_cents = parse_positive_amount_cents(daily_price, "daily_price")
    currency = parse_currency(currency)

    rental = run_atomic(CreateRentalCommand(
        scope=scope,
        car_id=car_id,
        client_name=client_name,
        client_phone=client_phone,
        start_date=start,
        end_date=end,
        daily_price_cents=daily_price_cents,
        currency=currency,
    ))
    current_app.logger.info("Rental %s created for car %s by user %s", rental.id, rental.car_id, actor.id)
    return rental


def complete_rental(scope: AccessScope, actor, rental_id: int) -> tuple[Rental, Transaction]:
    """
    Close an active rental and book its income.

    Raises:
        NotFoundError: rental missing or outside scope
        ConflictError: rental already completed (or completed concurrently)
    """
    rental, tx = run_atomic(CompleteRentalCommand(scope=scope, actor_id=actor.id, rental_id=rental_id))
    current_app.logger.info("Rental %s completed; income transaction %s", rental.id, tx.id)
    return rental, tx


def list_rentals(scope: AccessScope, *, status: str | None = None) -> list[Rental]:
    query = scope.apply(db.session.query(Rental), Rental)
    if status:
        status = parse_choice(status, "status", RENTAL_STATUSES)
        query = query.filter(Rental.status == status)
    return query.order_by(Rental.created_at.desc(), Rental.id.desc()).all()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not (1 <= month <= 12):
        raise ValidationError("month must be between 1 and 12")
    if not (1900 <= year <= 9999):
        raise ValidationError("year must be between 1900 and 9999")
    last_day = _calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def rentals_in_month(scope: AccessScope, year: int, month: int) -> list[Rental]:
    """
    Rentals whose [start_date, end_date] intersects the calendar month:
    start_date <= last_day AND end_date >= first_day.
    """
    first_day, last_day = month_bounds(year, month)
    query = scope.apply(db.session.query(Rental), Rental).filter(
        Rental.start_date <= last_day,
        Rental.end_date >= first_day,
    )
    return query.order_by(Rental.start_date.asc(), Rental.id.asc()).all()


def daily_counts(rentals: list[Rental], year: int, month: int) -> dict[str, int]:
    """Number of rentals covering each day of the month, clipped to the month."""
    first_day, last_day = month_bounds(year, month)
    counts = {}
    day = first_day
    while day <= last_day:
        counts[day.isoformat()] = 0
        day += timedelta(days=1)

    for rental in rentals:
        day = max(rental.start_date, first_day)
        stop = min(rental.end_date, last_day)
        while day <= stop:
            counts[day.isoformat()] += 1
            day += timedelta(days=1)
    return counts


def calendar(scope: AccessScope, year: int, month: int) -> dict:
    rentals = rentals_in_month(scope, year, month)
    return {
        "year": year,
        "month": month,
        "rentals": [r.to_list_dict() for r in rentals],
        "daily_counts": daily_counts(rentals, year, month),
    }
