# Overview: Service-layer operations for concurrency; atomic units of work over the store.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from autocrm.validation import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Optimistic version_id checks on Car/Rental/Part cover SQLite.
    """
    return query.with_for_update()


class DomainCommand:
    """
    A multi-statement mutation executed as one all-or-nothing unit.

    Subclasses implement execute(); they may add/flush rows but never commit.
    run_atomic() owns the commit/rollback.
    """

    def execute(self):  # pragma: no cover - interface
        raise NotImplementedError


def run_atomic(command):
    """
    Execute a DomainCommand (or plain callable) and commit exactly once.

    - Any exception rolls back every statement the command issued.
    - Optimistic-lock failures (StaleDataError) and uniqueness violations on
      synthesized rows mean another request got there first; they surface as
      ConflictError so the caller sees the same error as a sequential repeat.
    - No retries: failures propagate to the caller.
    """
    op = command.execute if isinstance(command, DomainCommand) else command
    try:
        result = op()
        db.session.commit()
        return result
    except (StaleDataError, IntegrityError) as exc:
        db.session.rollback()
        raise ConflictError("Concurrent modification detected; the entity was changed by another request") from exc
    except Exception:
        db.session.rollback()
        raise
