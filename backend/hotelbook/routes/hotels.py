# Overview: Flask API routes for hotel search, detail and room type maintenance.

"""
Hotel Catalog Routes

Public:
- GET  /api/hotels                    search (keyword, star, checkIn, minPrice, maxPrice, page, pageSize)
- GET  /api/hotels/<id>               detail with room types, cheapest first

Authenticated:
- GET  /api/hotels/mine               hotels owned by the caller
- POST /api/hotels/<id>/room_types    add a room type (admin or owner)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services.catalog_service import HotelCatalogService, HotelNotFound, HotelSearchFilters
from ..validation import PermissionDenied, ValidationError
from ..decorators import require_auth
from ..responses import domain_error_response, internal_error_response, request_page


hotels_bp = Blueprint("hotels", __name__, url_prefix="/api/hotels")


@hotels_bp.get("")
def search_hotels_route():
    try:
        filters = HotelSearchFilters.from_args(request.args)
        page = HotelCatalogService(db.session).search(filters, request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to search hotels")
        return internal_error_response()


@hotels_bp.get("/mine")
@require_auth
def my_hotels_route():
    try:
        page = HotelCatalogService(db.session).list_for_owner(g.current_user.id, request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list owned hotels")
        return internal_error_response()


@hotels_bp.get("/<int:hotel_id>")
def hotel_detail_route(hotel_id: int):
    try:
        hotel, room_types = HotelCatalogService(db.session).get_detail(hotel_id)
        return jsonify({
            "success": True,
            "data": {
                "hotel": hotel.to_dict(),
                "roomTypes": [rt.to_dict() for rt in room_types],
            },
        }), 200
    except HotelNotFound as e:
        return domain_error_response(e, not_found=(HotelNotFound,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to load hotel %s", hotel_id)
        return internal_error_response()


@hotels_bp.post("/<int:hotel_id>/room_types")
@require_auth
def add_room_type_route(hotel_id: int):
    try:
        room_type = HotelCatalogService(db.session).add_room_type(
            hotel_id,
            request.get_json(silent=True),
            actor=g.current_user,
        )
        current_app.logger.info(
            "Room type added: id=%s hotel_id=%s user_id=%s", room_type.id, hotel_id, g.current_user.id
        )
        return jsonify({"success": True, "data": room_type.to_dict()}), 201
    except (ValidationError, PermissionDenied, HotelNotFound) as e:
        return domain_error_response(e, not_found=(HotelNotFound,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to add room type to hotel %s", hotel_id)
        return internal_error_response()
