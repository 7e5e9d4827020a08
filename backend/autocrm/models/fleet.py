from __future__ import annotations

from ..extensions import db
from autocrm.time_utils import to_utc_z, to_iso_date


# Status vocabularies (transitions live in services/state_machine.py)
CAR_STATUSES = ("active", "rented", "dismantled")
RENTAL_STATUSES = ("active", "completed")
PART_STATUSES = ("available", "sold")


class Car(db.Model):
    """
    A vehicle bought by a user.

    price_cents/currency are the acquisition cost and never change after
    creation. status is the only mutable column and moves only through the
    car state machine:

        active -> rented      (rental created)
        rented -> active      (rental completed)
        active -> dismantled  (terminal)
    """
    __tablename__ = "cars"
    __table_args__ = (
        db.Index("ix_cars_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    brand = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=True)
    vin = db.Column(db.String(50), nullable=True)

    price_cents = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(3), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    owner = db.relationship("User", backref=db.backref("cars", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Car id={self.id} {self.brand} {self.model} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "brand": self.brand,
            "model": self.model,
            "year": self.year,
            "vin": self.vin,
            "price_cents": self.price_cents,
            "currency": self.currency,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class Rental(db.Model):
    """
    A rental of one car to one client over an inclusive date range.

    total_amount_cents = days_inclusive * daily_price_cents, computed once at
    creation and immutable afterwards. Completion (active -> completed) is
    one-way and books exactly one income Transaction.
    """
    __tablename__ = "rentals"
    __table_args__ = (
        db.Index("ix_rentals_dates", "start_date", "end_date"),
        db.CheckConstraint("end_date >= start_date", name="ck_rentals_date_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    client_name = db.Column(db.String(200), nullable=False)
    client_phone = db.Column(db.String(50), nullable=True)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    daily_price_cents = db.Column(db.BigInteger, nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    total_amount_cents = db.Column(db.BigInteger, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    car = db.relationship("Car", backref=db.backref("rentals", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Rental id={self.id} car_id={self.car_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "car_id": self.car_id,
            "user_id": self.user_id,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "daily_price_cents": self.daily_price_cents,
            "currency": self.currency,
            "total_amount_cents": self.total_amount_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
        }

    def to_list_dict(self) -> dict:
        """Rental row joined with the car's display fields."""
        data = self.to_dict()
        data.update({
            "brand": self.car.brand if self.car else None,
            "model": self.car.model if self.car else None,
            "year": self.car.year if self.car else None,
        })
        return data


class Part(db.Model):
    """
    A part taken off a dismantled car and held for sale.

    estimated_price_cents/currency describe the asking price; the sale_*
    columns are filled exactly once when the part is sold.
    """
    __tablename__ = "parts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(200), nullable=False)
    estimated_price_cents = db.Column(db.BigInteger, nullable=True)
    currency = db.Column(db.String(3), nullable=False)
    storage_location = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="available", index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    # Sale snapshot
    sale_price_cents = db.Column(db.BigInteger, nullable=True)
    sale_currency = db.Column(db.String(3), nullable=True)
    buyer = db.Column(db.String(200), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    sold_at = db.Column(db.DateTime(timezone=True), nullable=True)

    car = db.relationship("Car", backref=db.backref("parts", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Part id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "car_id": self.car_id,
            "user_id": self.user_id,
            "name": self.name,
            "estimated_price_cents": self.estimated_price_cents,
            "currency": self.currency,
            "storage_location": self.storage_location,
            "notes": self.notes,
            "status": self.status,
            "sale_price_cents": self.sale_price_cents,
            "sale_currency": self.sale_currency,
            "buyer": self.buyer,
            "created_at": to_utc_z(self.created_at),
            "sold_at": to_utc_z(self.sold_at) if self.sold_at else None,
        }

    def to_list_dict(self) -> dict:
        data = self.to_dict()
        data.update({
            "brand": self.car.brand if self.car else None,
            "model": self.car.model if self.car else None,
            "year": self.car.year if self.car else None,
        })
        return data
