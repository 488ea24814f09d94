# Overview: Flask API routes for orders; booking, price quotes and the caller's order list.

"""
Order Routes

- POST /api/orders         create a booking (status=pending_payment)
- POST /api/orders/quote   price a booking without creating it
- GET  /api/my_orders      the caller's orders, newest first

SECURITY:
- The booking user is always g.current_user; a user_id in the body is ignored
- total_price is computed server-side; a client-sent price is ignored
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services.order_service import OrderRequest, OrderService, RoomTypeNotFound
from ..validation import ValidationError
from ..decorators import require_auth
from ..responses import domain_error_response, internal_error_response, request_page


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.post("/orders")
@require_auth
def create_order_route():
    """
    Body: hotel_id, room_type_id, check_in_date, check_out_date, num_rooms (default 1).

    Error responses:
        400: MissingOrInvalidField, InvalidDate, InvalidDateRange
        404: RoomTypeNotFound
    """
    try:
        order_request = OrderRequest.from_payload(request.get_json(silent=True))
        order = OrderService(db.session).create_order(g.current_user.id, order_request)
        current_app.logger.info(
            "Order created: id=%s user_id=%s hotel_id=%s total=%s",
            order.id, order.user_id, order.hotel_id, order.total_price,
        )
        return jsonify({"success": True, "data": order.to_dict()}), 201
    except ValidationError as e:
        return domain_error_response(e, not_found=(RoomTypeNotFound,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create order")
        return internal_error_response()


@orders_bp.post("/orders/quote")
@require_auth
def quote_order_route():
    try:
        order_request = OrderRequest.from_payload(request.get_json(silent=True))
        quote = OrderService(db.session).quote(order_request)
        return jsonify({"success": True, "data": quote}), 200
    except ValidationError as e:
        return domain_error_response(e, not_found=(RoomTypeNotFound,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to quote order")
        return internal_error_response()


@orders_bp.get("/my_orders")
@require_auth
def my_orders_route():
    try:
        page = OrderService(db.session).list_for_user(g.current_user.id, request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list orders")
        return internal_error_response()
