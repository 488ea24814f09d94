# Overview: Flask API routes for the admin console; review queue, decisions and hotel edits.

"""
Admin Console Routes

All routes require an authenticated admin (is_admin=True).

- GET  /api/admin/applications/pending              review queue, newest first
- POST /api/admin/applications/<id>/decision        approve or reject
- GET  /api/admin/hotels                            every hotel, inactive included
- PUT  /api/admin/hotels/<id>                       edit a hotel
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services.application_service import ApplicationReviewService, NotFoundOrAlreadyProcessed
from ..services.catalog_service import HotelCatalogService, HotelNotFound
from ..validation import PermissionDenied, ValidationError
from ..decorators import require_auth, require_admin
from ..responses import domain_error_response, internal_error_response, request_page


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/applications/pending")
@require_auth
@require_admin
def pending_applications_route():
    try:
        page = ApplicationReviewService(db.session).list_pending(request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list pending applications")
        return internal_error_response()


@admin_bp.post("/applications/<int:application_id>/decision")
@require_auth
@require_admin
def decide_application_route(application_id: int):
    """
    Approve or reject a pending application.

    Body: {"action": "approve" | "reject", "admin_remark": "..."}

    Error responses:
        400: action is not approve/reject
        403: not an admin
        404: NotFoundOrAlreadyProcessed (unknown id, or already decided)
    """
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        remark = data.get("admin_remark")
        if remark is not None and not isinstance(remark, str):
            raise ValidationError("admin_remark must be a string", field="admin_remark")

        outcome = ApplicationReviewService(db.session).decide(
            application_id,
            data.get("action"),
            remark,
            is_admin=g.current_user.is_admin,
        )
        current_app.logger.info(
            "Application decided: id=%s outcome=%s hotel_id=%s admin_id=%s",
            outcome.application_id, outcome.outcome, outcome.hotel_id, g.current_user.id,
        )
        return jsonify({
            "success": True,
            "message": f"Application {outcome.outcome}",
            "data": outcome.to_dict(),
        }), 200
    except (ValidationError, PermissionDenied, NotFoundOrAlreadyProcessed) as e:
        return domain_error_response(e, not_found=(NotFoundOrAlreadyProcessed,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to decide application %s", application_id)
        return internal_error_response()


@admin_bp.get("/hotels")
@require_auth
@require_admin
def list_hotels_route():
    try:
        page = HotelCatalogService(db.session).list_all(request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list hotels")
        return internal_error_response()


@admin_bp.put("/hotels/<int:hotel_id>")
@require_auth
@require_admin
def update_hotel_route(hotel_id: int):
    try:
        hotel = HotelCatalogService(db.session).update_hotel(hotel_id, request.get_json(silent=True))
        current_app.logger.info("Hotel updated: id=%s admin_id=%s", hotel_id, g.current_user.id)
        return jsonify({"success": True, "message": "Hotel updated", "data": hotel.to_dict()}), 200
    except (ValidationError, HotelNotFound) as e:
        return domain_error_response(e, not_found=(HotelNotFound,))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update hotel %s", hotel_id)
        return internal_error_response()
