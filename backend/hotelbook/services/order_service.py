# Overview: Service-layer operations for orders; validates bookings and computes prices.

"""
Order Pricing & Creation

PRICING:
    nights      = ceil((check_out - check_in) / 1 day)
    total_price = round_half_up(base_price * num_rooms * nights, 2 places)

All arithmetic is Decimal. base_price is fixed per room type; there is no
seasonal pricing and no inventory check (orders never touch
RoomType.total_inventory).

VALIDATION ORDER (first failure wins):
    1. MissingOrInvalidField  hotel_id / room_type_id / dates missing, num_rooms < 1
    2. InvalidDate            a date does not parse
    3. InvalidDateRange       check_out is not after check_in
    4. RoomTypeNotFound       room type missing or belongs to another hotel
    5. MissingOrInvalidField  total_price would not fit Numeric(10, 2)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy.orm import Session

from ..models import Hotel, Order, RoomType, ORDER_STATUS_PENDING_PAYMENT
from ..validation import MAX_PRICE, ValidationError, coerce_int
from .concurrency import atomic
from .pagination import Page, PageRequest, paginate
from hotelbook.time_utils import parse_local_datetime, utcnow


CENT = Decimal("0.01")
SECONDS_PER_DAY = 86400


class MissingOrInvalidField(ValidationError):
    """A required booking field is absent or malformed."""


class InvalidDate(ValidationError):
    """check_in_date / check_out_date is not a calendar date."""


class InvalidDateRange(ValidationError):
    """check_out_date is not strictly after check_in_date."""


class RoomTypeNotFound(ValidationError):
    """The room type does not exist under the requested hotel."""


@dataclass(frozen=True)
class OrderRequest:
    """Validated booking input. The booking user comes from the session."""
    hotel_id: int
    room_type_id: int
    check_in: date
    check_out: date
    num_rooms: int

    @classmethod
    def from_payload(cls, payload: dict | None) -> "OrderRequest":
        if not isinstance(payload, dict):
            raise MissingOrInvalidField("Invalid JSON payload")

        for key in ("hotel_id", "room_type_id", "check_in_date", "check_out_date"):
            value = payload.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingOrInvalidField(f"{key} is required", field=key)

        hotel_id = _field_int(payload["hotel_id"], "hotel_id")
        room_type_id = _field_int(payload["room_type_id"], "room_type_id")
        num_rooms = _field_int(payload.get("num_rooms", 1), "num_rooms")
        if num_rooms < 1:
            raise MissingOrInvalidField("num_rooms must be >= 1", field="num_rooms")

        check_in = _parse_stay_date(payload["check_in_date"], "check_in_date")
        check_out = _parse_stay_date(payload["check_out_date"], "check_out_date")
        if check_out <= check_in:
            raise InvalidDateRange("check_out_date must be after check_in_date", field="check_out_date")

        return cls(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            num_rooms=num_rooms,
        )


def _field_int(value: Any, key: str) -> int:
    try:
        return coerce_int(value, key)
    except ValidationError as e:
        raise MissingOrInvalidField(str(e), field=key) from e


def _parse_stay_date(value: Any, key: str) -> date:
    """Calendar date as written in an ISO date or datetime string; time and offset are dropped."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"{key} must be an ISO date string", field=key)
    try:
        parsed = parse_local_datetime(value)
    except ValueError:
        raise InvalidDate(f"{key} is not a valid date", field=key)
    if parsed is None:
        raise InvalidDate(f"{key} is not a valid date", field=key)
    return parsed.date()


def count_nights(check_in: date | datetime, check_out: date | datetime) -> int:
    """Partial days round up; a valid range is always at least one night."""
    seconds = (check_out - check_in).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def price_stay(base_price: Decimal, num_rooms: int, check_in: date, check_out: date) -> tuple[int, Decimal]:
    """Return (nights, total_price) for a validated stay."""
    if not isinstance(base_price, Decimal):
        base_price = Decimal(str(base_price))
    nights = count_nights(check_in, check_out)
    total = (base_price * num_rooms * nights).quantize(CENT, rounding=ROUND_HALF_UP)
    return nights, total


def _price(room_type: RoomType, request: OrderRequest) -> tuple[int, Decimal]:
    nights, total = price_stay(room_type.base_price, request.num_rooms, request.check_in, request.check_out)
    if total > MAX_PRICE:
        raise MissingOrInvalidField(f"total_price cannot exceed {MAX_PRICE}", field="num_rooms")
    return nights, total


@dataclass(frozen=True)
class OrderListItem:
    """An order joined with the names a client shows next to it."""
    order: Order
    hotel_name_zh: str | None
    hotel_name_en: str | None
    room_type_name: str | None
    base_price: Decimal | None

    def to_dict(self) -> dict:
        data = self.order.to_dict()
        data.update({
            "hotel_name_zh": self.hotel_name_zh,
            "hotel_name_en": self.hotel_name_en,
            "room_type_name": self.room_type_name,
            "base_price": f"{Decimal(str(self.base_price)):.2f}" if self.base_price is not None else None,
        })
        return data


class OrderService:
    def __init__(self, session: Session):
        self.session = session

    def _room_type_for(self, request: OrderRequest) -> RoomType:
        # Filtering on hotel_id as well rejects room types borrowed from another hotel
        room_type = (
            self.session.query(RoomType)
            .filter(
                RoomType.id == request.room_type_id,
                RoomType.hotel_id == request.hotel_id,
            )
            .first()
        )
        if room_type is None:
            raise RoomTypeNotFound(
                f"Room type {request.room_type_id} not found for hotel {request.hotel_id}",
                field="room_type_id",
            )
        return room_type

    def quote(self, request: OrderRequest) -> dict:
        """Price a validated request without persisting anything."""
        room_type = self._room_type_for(request)
        nights, total_price = _price(room_type, request)
        return {
            "hotel_id": request.hotel_id,
            "room_type_id": room_type.id,
            "check_in_date": request.check_in.isoformat(),
            "check_out_date": request.check_out.isoformat(),
            "num_rooms": request.num_rooms,
            "nights": nights,
            "base_price": f"{Decimal(str(room_type.base_price)):.2f}",
            "total_price": f"{total_price:.2f}",
        }

    def create_order(self, user_id: int, request: OrderRequest) -> Order:
        """
        Price and persist a booking with status pending_payment.

        Returns the order as re-read from the store after commit, so
        total_price reflects the column's Numeric(10, 2) coercion.

        Raises:
            RoomTypeNotFound: room_type_id is unknown or not under hotel_id
            MissingOrInvalidField: the total does not fit the price column
        """
        with atomic(self.session):
            room_type = self._room_type_for(request)
            _, total_price = _price(room_type, request)

            order = Order(
                user_id=user_id,
                hotel_id=request.hotel_id,
                room_type_id=room_type.id,
                check_in_date=request.check_in,
                check_out_date=request.check_out,
                num_rooms=request.num_rooms,
                total_price=total_price,
                status=ORDER_STATUS_PENDING_PAYMENT,
                created_at=utcnow(),
            )
            self.session.add(order)
            self.session.flush()
            order_id = order.id

        return self.session.get(Order, order_id, populate_existing=True)

    def list_for_user(self, user_id: int, request: PageRequest) -> Page:
        """The caller's orders, newest first, with hotel and room type names."""
        query = (
            self.session.query(
                Order,
                Hotel.name_zh,
                Hotel.name_en,
                RoomType.name,
                RoomType.base_price,
            )
            .join(Hotel, Hotel.id == Order.hotel_id)
            .join(RoomType, RoomType.id == Order.room_type_id)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        page = paginate(query, request)
        page.items = [OrderListItem(*row) for row in page.items]
        return page
