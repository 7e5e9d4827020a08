# Overview: Service-layer operations for the transaction ledger; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..extensions import db
from ..models import Transaction, TRANSACTION_TYPES
from .scope_service import AccessScope
from autocrm.validation import ValidationError
from autocrm.time_utils import utcnow
"""
AutoCRM Ledger Invariants (authoritative)

- Append-only: rows are inserted, never updated or deleted.
- Amounts are positive integer cents; the sign lives in `type`.
- Income rows are only synthesized (rental completion, part sale), and each
  completion/sale produces exactly one (unique rental_id / part_id).
- append_transaction() flushes but never commits, so the row is written
  inside the same DB transaction as the domain event it records.
- Aggregations group by currency; amounts in different currencies are never summed.
"""


EXPENSE_CATEGORIES = ("repair", "fuel", "insurance", "maintenance", "parking", "wash", "parts", "other")
INCOME_CATEGORIES = ("rental", "parts")

MAX_LIST_LIMIT = 500


def append_transaction(
    *,
    car_id: int,
    owner_user_id: int,
    type: str,
    amount_cents: int,
    currency: str,
    category: str,
    description: str | None = None,
    created_by_user_id: int | None = None,
    rental_id: int | None = None,
    part_id: int | None = None,
    occurred_at: Optional[datetime] = None,
) -> Transaction:
    """
    Append-only ledger write.

    - No domain logic here beyond shape checks.
    - occurred_at is business time; defaults to now.
    """
    if type not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid transaction type '{type}'")
    if amount_cents is None or amount_cents <= 0:
        raise ValidationError("amount must be greater than 0")
    if type == "expense" and category not in EXPENSE_CATEGORIES:
        raise ValidationError(
            f"Invalid category '{category}'. Must be one of: {', '.join(EXPENSE_CATEGORIES)}"
        )

    tx = Transaction(
        car_id=car_id,
        user_id=owner_user_id,
        created_by_user_id=created_by_user_id,
        type=type,
        amount_cents=amount_cents,
        currency=currency,
        category=category,
        description=description,
        rental_id=rental_id,
        part_id=part_id,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(tx)
    db.session.flush()  # ensures tx.id is assigned without committing
    return tx


def list_transactions(
    scope: AccessScope,
    *,
    car_id: int | None = None,
    type: str | None = None,
    currency: str | None = None,
    limit: int = 100,
) -> list[Transaction]:
    """In-scope ledger rows, newest first."""
    if type is not None and type not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid type '{type}'. Must be one of: {', '.join(TRANSACTION_TYPES)}")
    if limit <= 0 or limit > MAX_LIST_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")

    query = scope.apply(db.session.query(Transaction), Transaction)
    if car_id is not None:
        query = query.filter(Transaction.car_id == car_id)
    if type is not None:
        query = query.filter(Transaction.type == type)
    if currency is not None:
        query = query.filter(Transaction.currency == currency)

    return query.order_by(Transaction.occurred_at.desc(), Transaction.id.desc()).limit(limit).all()
