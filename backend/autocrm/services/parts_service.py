# Overview: Parts Lifecycle Manager; parts harvested from dismantled cars and their sale.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import Car, Part, Transaction, PART_STATUSES
from .concurrency import DomainCommand, run_atomic
from .ledger_service import append_transaction
from .scope_service import AccessScope, get_in_scope
from .state_machine import PART_MACHINE, apply_transition
from autocrm.time_utils import utcnow
from autocrm.validation import (
    ConflictError,
    require_text,
    optional_text,
    parse_int,
    parse_amount_cents,
    parse_positive_amount_cents,
    parse_currency,
    parse_choice,
    ValidationError,
)


def create_part(
    scope: AccessScope,
    actor,
    *,
    car_id,
    name,
    currency,
    estimated_price=None,
    storage_location=None,
    notes=None,
) -> Part:
    """
    Put a part from a dismantled car into inventory (status 'available').

    Raises:
        NotFoundError: car missing or outside scope
        ConflictError: car is not dismantled
    """
    car_id = parse_int(car_id, "car_id", required=True)
    name = require_text(name, "name", max_length=200)
    currency = parse_currency(currency)
    estimated_price_cents = parse_amount_cents(estimated_price, "estimated_price", required=False)
    if estimated_price_cents is not None and estimated_price_cents < 0:
        raise ValidationError("estimated_price must be >= 0")
    storage_location = optional_text(storage_location, "storage_location", max_length=100)
    notes = optional_text(notes, "notes")

    def _op():
        car = get_in_scope(Car, car_id, scope, label="Car")
        if car.status != "dismantled":
            raise ConflictError("Parts can only be added to dismantled cars")

        part = Part(
            car_id=car.id,
            user_id=car.user_id,
            name=name,
            estimated_price_cents=estimated_price_cents,
            currency=currency,
            storage_location=storage_location,
            notes=notes,
            status="available",
        )
        db.session.add(part)
        db.session.flush()
        return part

    return run_atomic(_op)


@dataclass
class SellPartCommand(DomainCommand):
    scope: AccessScope
    actor_id: int
    part_id: int
    sale_price_cents: int
    sale_currency: str | None
    buyer: str | None
    notes: str | None

    def execute(self) -> tuple[Part, Transaction]:
        part = get_in_scope(Part, self.part_id, self.scope, for_update=True, label="Part")
        apply_transition(PART_MACHINE, part, "sell", message="Part is already sold")

        part.sold_at = utcnow()
        part.sale_price_cents = self.sale_price_cents
        part.sale_currency = self.sale_currency or part.currency
        part.buyer = self.buyer
        if self.notes:
            part.notes = self.notes

        tx = append_transaction(
            car_id=part.car_id,
            owner_user_id=part.user_id,
            created_by_user_id=self.actor_id,
            type="income",
            amount_cents=part.sale_price_cents,
            currency=part.sale_currency,
            category="parts",
            description=f"Part sale: {part.name}" + (f" to {part.buyer}" if part.buyer else ""),
            part_id=part.id,
        )
        db.session.flush()
        return part, tx


def sell_part(
    scope: AccessScope,
    actor,
    part_id: int,
    *,
    sale_price,
    sale_currency=None,
    buyer=None,
    notes=None,
) -> tuple[Part, Transaction]:
    """
    available -> sold, booking exactly one income transaction.

    sale_currency defaults to the part's currency.

    Raises:
        ValidationError: sale_price <= 0
        NotFoundError: part missing or outside scope
        ConflictError: part already sold (or sold concurrently)
    """
    sale_price_cents = parse_positive_amount_cents(sale_price, "sale_price")
    sale_currency = parse_currency(sale_currency, "sale_currency", required=False)
    buyer = optional_text(buyer, "buyer", max_length=200)
    notes = optional_text(notes, "notes")

    part, tx = run_atomic(SellPartCommand(
        scope=scope,
        actor_id=actor.id,
        part_id=part_id,
        sale_price_cents=sale_price_cents,
        sale_currency=sale_currency,
        buyer=buyer,
        notes=notes,
    ))
    current_app.logger.info("Part %s sold; income transaction %s", part.id, tx.id)
    return part, tx


def list_parts(
    scope: AccessScope,
    *,
    search: str | None = None,
    status: str | None = None,
    currency: str | None = None,
) -> list[Part]:
    """In-scope parts, newest first; search covers part name, car brand/model and storage location."""
    query = scope.apply(db.session.query(Part).join(Car, Part.car_id == Car.id), Part)

    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Part.name).like(pattern),
            func.lower(Car.brand).like(pattern),
            func.lower(Car.model).like(pattern),
            func.lower(func.coalesce(Part.storage_location, "")).like(pattern),
        ))

    if status:
        status = parse_choice(status, "status", PART_STATUSES)
        query = query.filter(Part.status == status)

    if currency:
        currency = parse_currency(currency)
        query = query.filter(Part.currency == currency)

    return query.order_by(Part.created_at.desc(), Part.id.desc()).all()
