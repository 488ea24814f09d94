from __future__ import annotations

from ..extensions import db
from hotelbook.time_utils import to_utc_z
from .catalog import OperatingPeriodMixin


class HotelApplication(OperatingPeriodMixin, db.Model):
    """
    A merchant's request to list a new hotel.

    LIFECYCLE:
        pending -> approved   (a Hotel row is created from this row)
        pending -> rejected   (no Hotel row)

    Both targets are terminal. processed_at is NULL exactly while pending.
    See services/application_service.py for the transition rules.
    """
    __tablename__ = "hotel_applications"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_hotel_applications_status",
        ),
        db.CheckConstraint(
            "(status = 'pending' AND processed_at IS NULL) OR "
            "(status <> 'pending' AND processed_at IS NOT NULL)",
            name="ck_hotel_applications_processed_at",
        ),
        db.CheckConstraint(
            "star_rating IS NULL OR (star_rating >= 1 AND star_rating <= 5)",
            name="ck_hotel_applications_star_rating",
        ),
        db.CheckConstraint(
            "operating_end > operating_start",
            name="ck_hotel_applications_operating_period",
        ),
        db.Index("ix_hotel_applications_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name_zh = db.Column(db.String(255), nullable=False)
    name_en = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=False)
    star_rating = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending")
    admin_remark = db.Column(db.Text, nullable=True)

    # Set on approval; the hotel is a copy, not a live reference
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    submitter = db.relationship("User", backref=db.backref("hotel_applications", lazy=True))

    def __repr__(self) -> str:
        return f"<HotelApplication id={self.id} status={self.status!r} user_id={self.user_id}>"

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
            "status": self.status,
            "admin_remark": self.admin_remark,
            "hotel_id": self.hotel_id,
            "created_at": to_utc_z(self.created_at),
            "processed_at": to_utc_z(self.processed_at) if self.processed_at else None,
        }
