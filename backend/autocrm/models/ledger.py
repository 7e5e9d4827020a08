from __future__ import annotations

from ..extensions import db
from autocrm.time_utils import to_utc_z


TRANSACTION_TYPES = ("income", "expense")


class Transaction(db.Model):
    """
    Append-only financial ledger, one row per money movement on a car.

    - expense rows are entered manually (services/car_service.record_expense)
    - income rows are only ever synthesized: rental completion (category
      "rental", rental_id set) or part sale (category "parts", part_id set)

    user_id is the car owner (drives visibility and dashboard totals);
    created_by_user_id is whoever performed the action.
    Rows are never updated or deleted.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_user_type_currency", "user_id", "type", "currency"),
        db.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # "income" | "expense"
    type = db.Column(db.String(10), nullable=False, index=True)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Back-references to the synthesizing document (unique: one income per completion/sale)
    rental_id = db.Column(db.Integer, db.ForeignKey("rentals.id"), nullable=True, unique=True)
    part_id = db.Column(db.Integer, db.ForeignKey("parts.id"), nullable=True, unique=True)

    occurred_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    car = db.relationship("Car", backref=db.backref("transactions", lazy=True))

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} {self.type} {self.amount_cents} {self.currency}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "car_id": self.car_id,
            "user_id": self.user_id,
            "created_by_user_id": self.created_by_user_id,
            "type": self.type,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "category": self.category,
            "description": self.description,
            "rental_id": self.rental_id,
            "part_id": self.part_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
