from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from hotelbook.time_utils import to_utc_z, to_iso_date
from hotelbook.validation import DateRange


class OperatingPeriodMixin:
    """
    Half-open operating period [operating_start, operating_end).

    Stored as two DATE columns so the same schema runs on SQLite and
    PostgreSQL; rendered in daterange text form for API clients.
    """
    operating_start = db.Column(db.Date, nullable=False)
    operating_end = db.Column(db.Date, nullable=False)

    @property
    def operating_period(self) -> DateRange:
        return DateRange(start=self.operating_start, end=self.operating_end)

    @operating_period.setter
    def operating_period(self, period: DateRange) -> None:
        self.operating_start = period.start
        self.operating_end = period.end

    def _period_dict(self) -> dict:
        return {
            "operating_period": str(self.operating_period) if self.operating_start else None,
            "operating_start": to_iso_date(self.operating_start),
            "operating_end": to_iso_date(self.operating_end),
        }


class Hotel(OperatingPeriodMixin, db.Model):
    """
    Live hotel catalog.

    Rows originating from an approved application are a write-once copy of
    that application's descriptive fields; later edits never touch the
    application history. Logical deletion is active=False.
    """
    __tablename__ = "hotels"
    __table_args__ = (
        db.CheckConstraint(
            "star_rating IS NULL OR (star_rating >= 1 AND star_rating <= 5)",
            name="ck_hotels_star_rating",
        ),
        db.CheckConstraint("operating_end > operating_start", name="ck_hotels_operating_period"),
        db.Index("ix_hotels_active", "active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    name_zh = db.Column(db.String(255), nullable=False)
    name_en = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=False)
    star_rating = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)

    active = db.Column(db.Boolean, nullable=True, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", backref=db.backref("hotels", lazy=True))
    room_types = db.relationship(
        "RoomType",
        back_populates="hotel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RoomType.base_price",
    )

    def __repr__(self) -> str:
        return f"<Hotel id={self.id} name_en={self.name_en!r} active={self.active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name_zh": self.name_zh,
            "name_en": self.name_en,
            "address": self.address,
            "star_rating": self.star_rating,
            **self._period_dict(),
            "description": self.description,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RoomType(db.Model):
    """A priced, capacity-bounded category of room within one hotel."""
    __tablename__ = "room_types"
    __table_args__ = (
        db.CheckConstraint("base_price >= 0", name="ck_room_types_base_price"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    hotel_id = db.Column(
        db.Integer,
        db.ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(100), nullable=False)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    capacity = db.Column(db.Integer, nullable=False, default=2)
    # Informational only: orders never decrement it
    total_inventory = db.Column(db.Integer, nullable=False, default=10)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    hotel = db.relationship("Hotel", back_populates="room_types")

    def __repr__(self) -> str:
        return f"<RoomType id={self.id} hotel_id={self.hotel_id} name={self.name!r} base_price={self.base_price}>"

    def to_dict(self) -> dict:
        base_price = self.base_price
        if base_price is not None and not isinstance(base_price, Decimal):
            base_price = Decimal(str(base_price))
        return {
            "id": self.id,
            "hotel_id": self.hotel_id,
            "name": self.name,
            "base_price": f"{base_price:.2f}" if base_price is not None else None,
            "capacity": self.capacity,
            "total_inventory": self.total_inventory,
            "created_at": to_utc_z(self.created_at),
        }
