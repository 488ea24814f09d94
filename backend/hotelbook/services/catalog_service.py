# Overview: Service-layer operations for the hotel catalog; search, detail, admin edits and room types.

"""
Hotel Catalog Service

Read side for end users (search, detail) plus the admin console's catalog
maintenance. Hotels are never physically deleted here; active=False hides a
hotel from search and detail while keeping its orders intact.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..models import Hotel, RoomType, User
from ..validation import (
    PermissionDenied,
    ValidationError,
    coerce_int,
    coerce_price,
    is_storable_id,
    optional_star_rating,
    optional_text,
    parse_date_range,
    require_text,
)
from .concurrency import atomic, lock_for_update
from .pagination import Page, PageRequest, paginate
from hotelbook.time_utils import parse_iso_date, utcnow


HOTEL_WRITABLE_FIELDS = {
    "name_zh", "name_en", "address", "star_rating",
    "operating_period", "description", "active",
}
# Echoed back by the admin console on save; accepted and ignored
HOTEL_READ_ONLY_FIELDS = {
    "id", "user_id", "created_at", "updated_at", "operating_start", "operating_end",
}


class HotelNotFound(LookupError):
    code = "HotelNotFound"

    def __init__(self, hotel_id: int):
        super().__init__(f"Hotel {hotel_id} not found")
        self.hotel_id = hotel_id


@dataclass(frozen=True)
class HotelSearchFilters:
    keyword: str | None = None
    min_star: int | None = None
    check_in: date | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None

    @classmethod
    def from_args(cls, args: Any) -> "HotelSearchFilters":
        """
        Build filters from query-string style args (camelCase as sent by the
        mini-program: keyword, star, checkIn, minPrice, maxPrice).
        """
        keyword = (args.get("keyword") or "").strip() or None

        raw_star = args.get("star")
        min_star = None
        if raw_star not in (None, ""):
            min_star = coerce_int(raw_star, "star")
            if not 1 <= min_star <= 5:
                raise ValidationError("star must be between 1 and 5", field="star")

        check_in = None
        raw_check_in = args.get("checkIn")
        if raw_check_in:
            try:
                check_in = parse_iso_date(raw_check_in)
            except ValueError:
                raise ValidationError("checkIn must be YYYY-MM-DD", field="checkIn")

        min_price = _optional_price(args.get("minPrice"), "minPrice")
        max_price = _optional_price(args.get("maxPrice"), "maxPrice")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("minPrice cannot exceed maxPrice", field="minPrice")

        return cls(
            keyword=keyword,
            min_star=min_star,
            check_in=check_in,
            min_price=min_price,
            max_price=max_price,
        )


def _optional_price(value: Any, key: str) -> Decimal | None:
    if value in (None, ""):
        return None
    return coerce_price(value, key)


def _coerce_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be true or false", field=key)


def _is_listed():
    # NULL counts as active, matching rows created before the column existed
    return or_(Hotel.active.is_(None), Hotel.active.is_(True))


class HotelCatalogService:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # End-user read side
    # ------------------------------------------------------------------

    def search(self, filters: HotelSearchFilters, request: PageRequest) -> Page:
        query = self.session.query(Hotel).filter(_is_listed())

        if filters.keyword:
            kw = filters.keyword
            query = query.filter(or_(
                Hotel.name_zh.icontains(kw, autoescape=True),
                Hotel.name_en.icontains(kw, autoescape=True),
                Hotel.address.icontains(kw, autoescape=True),
            ))

        if filters.min_star is not None:
            query = query.filter(Hotel.star_rating >= filters.min_star)

        if filters.check_in is not None:
            query = query.filter(
                Hotel.operating_start <= filters.check_in,
                Hotel.operating_end > filters.check_in,
            )

        price_conditions = []
        if filters.min_price is not None:
            price_conditions.append(RoomType.base_price >= filters.min_price)
        if filters.max_price is not None:
            price_conditions.append(RoomType.base_price <= filters.max_price)
        if price_conditions:
            query = query.filter(Hotel.room_types.any(and_(*price_conditions)))

        return paginate(query.order_by(Hotel.id.asc()), request)

    def get_detail(self, hotel_id: int) -> tuple[Hotel, list[RoomType]]:
        if not is_storable_id(hotel_id):
            raise HotelNotFound(hotel_id)
        hotel = (
            self.session.query(Hotel)
            .filter(Hotel.id == hotel_id, _is_listed())
            .first()
        )
        if hotel is None:
            raise HotelNotFound(hotel_id)
        room_types = (
            self.session.query(RoomType)
            .filter(RoomType.hotel_id == hotel.id)
            .order_by(RoomType.base_price.asc(), RoomType.id.asc())
            .all()
        )
        return hotel, room_types

    # ------------------------------------------------------------------
    # Merchant / admin side
    # ------------------------------------------------------------------

    def list_for_owner(self, user_id: int, request: PageRequest) -> Page:
        query = (
            self.session.query(Hotel)
            .filter(Hotel.user_id == user_id)
            .order_by(Hotel.created_at.desc(), Hotel.id.desc())
        )
        return paginate(query, request)

    def list_all(self, request: PageRequest) -> Page:
        """Admin listing, inactive hotels included."""
        return paginate(self.session.query(Hotel).order_by(Hotel.id.asc()), request)

    def update_hotel(self, hotel_id: int, payload: dict | None) -> Hotel:
        """
        Apply an admin edit.

        Only HOTEL_WRITABLE_FIELDS change; the originating application is
        not touched. Fields are validated the same way as a submission.
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        for key in payload:
            if key not in HOTEL_WRITABLE_FIELDS and key not in HOTEL_READ_ONLY_FIELDS:
                raise ValidationError(f"Field not allowed: {key}", field=key)

        patch: dict = {}
        for key in ("name_zh", "name_en"):
            if key in payload:
                patch[key] = require_text(payload, key, max_length=255)
        if "address" in payload:
            patch["address"] = require_text(payload, "address")
        if "star_rating" in payload:
            patch["star_rating"] = optional_star_rating(payload)
        if "description" in payload:
            patch["description"] = optional_text(payload, "description")
        if "active" in payload:
            patch["active"] = _coerce_bool(payload["active"], "active")
        period = None
        if "operating_period" in payload:
            period = parse_date_range(payload["operating_period"])

        if not is_storable_id(hotel_id):
            raise HotelNotFound(hotel_id)
        with atomic(self.session):
            hotel = lock_for_update(self.session.query(Hotel).filter_by(id=hotel_id)).first()
            if hotel is None:
                raise HotelNotFound(hotel_id)
            for key, value in patch.items():
                setattr(hotel, key, value)
            if period is not None:
                hotel.operating_period = period
            hotel.updated_at = utcnow()

        return self.session.get(Hotel, hotel_id, populate_existing=True)

    def add_room_type(self, hotel_id: int, payload: dict | None, *, actor: User) -> RoomType:
        """Add a room type; allowed for admins and the hotel's owner."""
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        hotel = self.session.get(Hotel, hotel_id) if is_storable_id(hotel_id) else None
        if hotel is None:
            raise HotelNotFound(hotel_id)
        if not actor.is_admin and hotel.user_id != actor.id:
            raise PermissionDenied("Only an admin or the hotel's owner can add room types")

        name = require_text(payload, "name", max_length=100)
        base_price = coerce_price(payload.get("base_price"), "base_price")

        capacity = 2
        if payload.get("capacity") is not None:
            capacity = coerce_int(payload["capacity"], "capacity")
            if capacity < 1:
                raise ValidationError("capacity must be >= 1", field="capacity")

        total_inventory = 10
        if payload.get("total_inventory") is not None:
            total_inventory = coerce_int(payload["total_inventory"], "total_inventory")
            if total_inventory < 0:
                raise ValidationError("total_inventory must be >= 0", field="total_inventory")

        with atomic(self.session):
            room_type = RoomType(
                hotel_id=hotel.id,
                name=name,
                base_price=base_price,
                capacity=capacity,
                total_inventory=total_inventory,
                created_at=utcnow(),
            )
            self.session.add(room_type)
            self.session.flush()
            room_type_id = room_type.id

        return self.session.get(RoomType, room_type_id, populate_existing=True)
