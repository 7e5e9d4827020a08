# Overview: Access Scope Resolver; turns the caller's identity into a row-visibility filter.

"""
Access Scope: Role-based Row Visibility

Every list, detail, mutation and aggregate query over Cars, Rentals,
Parts and Transactions is restricted to the caller's own rows unless the
caller is an ADMIN.

SECURITY INVARIANTS:
1. Every authenticated request has g.scope set (see decorators.require_auth)
2. Every query touching owned data goes through AccessScope.apply()
3. Rows outside the scope are reported exactly like missing rows
   (NotFoundError, same message) so other users' data is never revealed

USAGE:
    from autocrm.services.scope_service import resolve_scope, get_in_scope

    scope = resolve_scope(g.current_user)
    cars = scope.apply(db.session.query(Car), Car).all()
    car = get_in_scope(Car, car_id, scope)
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import g

from ..extensions import db
from ..models import ROLE_ADMIN
from .concurrency import lock_for_update
from autocrm.validation import NotFoundError, AuthError


@dataclass(frozen=True)
class AccessScope:
    """
    Declarative visibility filter.

    all=True: no owner filter (admins)
    all=False: only rows whose user_id == owner_id
    """
    all: bool
    owner_id: int | None = None

    def __post_init__(self):
        if not self.all and self.owner_id is None:
            raise ValueError("Restricted scope requires owner_id")

    def apply(self, query, model):
        """Restrict a query over `model` (which must have user_id) to this scope."""
        if self.all:
            return query
        return query.filter(model.user_id == self.owner_id)

    def allows(self, row) -> bool:
        return self.all or row.user_id == self.owner_id


def resolve_scope(user) -> AccessScope:
    """
    scope(caller) -> {all, owner_id}. Pure function of identity + role.
    """
    if user is None:
        raise AuthError("Authentication required")
    if user.role == ROLE_ADMIN:
        return AccessScope(all=True, owner_id=None)
    return AccessScope(all=False, owner_id=user.id)


def get_current_scope() -> AccessScope:
    """
    Get the request's scope from Flask g context.

    SECURITY: Raises AuthError if no scope was established.
    """
    scope = getattr(g, "scope", None)
    if scope is None:
        raise AuthError("Access scope not established")
    return scope


def get_in_scope(model, entity_id: int, scope: AccessScope, *, for_update: bool = False, label: str | None = None):
    """
    Fetch one row by id within scope, or raise NotFoundError.

    Args:
        model: Car / Rental / Part / Transaction
        entity_id: primary key from the request
        scope: caller's AccessScope
        for_update: lock the row (SELECT ... FOR UPDATE where supported)
        label: name used in the error message (defaults to the model name)
    """
    query = scope.apply(db.session.query(model).filter(model.id == entity_id), model)
    if for_update:
        query = lock_for_update(query)
    row = query.first()
    if row is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return row
