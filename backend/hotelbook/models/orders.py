from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from hotelbook.time_utils import to_utc_z, to_iso_date


ORDER_STATUS_PENDING_PAYMENT = "pending_payment"


class Order(db.Model):
    """
    A room booking.

    total_price is derived at creation (base_price * num_rooms * nights)
    and persisted; status is advanced later by payment collaborators.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("num_rooms >= 1", name="ck_orders_num_rooms"),
        db.CheckConstraint("check_out_date > check_in_date", name="ck_orders_date_range"),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False, index=True)
    room_type_id = db.Column(db.Integer, db.ForeignKey("room_types.id"), nullable=False, index=True)

    check_in_date = db.Column(db.Date, nullable=False)
    check_out_date = db.Column(db.Date, nullable=False)
    num_rooms = db.Column(db.Integer, nullable=False, default=1)

    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(32), nullable=False, default=ORDER_STATUS_PENDING_PAYMENT, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    hotel = db.relationship("Hotel")
    room_type = db.relationship("RoomType")

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} total_price={self.total_price} status={self.status!r}>"

    def to_dict(self) -> dict:
        total = self.total_price
        if total is not None and not isinstance(total, Decimal):
            total = Decimal(str(total))
        return {
            "id": self.id,
            "user_id": self.user_id,
            "hotel_id": self.hotel_id,
            "room_type_id": self.room_type_id,
            "check_in_date": to_iso_date(self.check_in_date),
            "check_out_date": to_iso_date(self.check_out_date),
            "num_rooms": self.num_rooms,
            "total_price": f"{total:.2f}" if total is not None else None,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
