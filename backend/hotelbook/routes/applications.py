# Overview: Flask API routes for merchant hotel applications.

"""
Merchant Application Routes

- POST /api/applications        submit a new hotel application (status=pending)
- GET  /api/applications/mine   the caller's applications in every state

SECURITY:
- The submitting user is always g.current_user; a user_id in the body is ignored
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services.application_service import ApplicationDraft, ApplicationReviewService
from ..validation import ValidationError
from ..decorators import require_auth
from ..responses import domain_error_response, internal_error_response, request_page


applications_bp = Blueprint("applications", __name__, url_prefix="/api/applications")


@applications_bp.post("")
@require_auth
def submit_application_route():
    """
    Body: name_zh, name_en, address, operating_period ("[YYYY-MM-DD,YYYY-MM-DD)"
    or {"start", "end"}), optional star_rating (1-5) and description.

    Response 201: {"success": true, "data": {"application_id": <id>, "status": "pending"}}
    """
    try:
        draft = ApplicationDraft.from_payload(request.get_json(silent=True))
        application_id = ApplicationReviewService(db.session).submit(g.current_user.id, draft)
        current_app.logger.info(
            "Application submitted: id=%s user_id=%s", application_id, g.current_user.id
        )
        return jsonify({
            "success": True,
            "message": "Application submitted",
            "data": {"application_id": application_id, "status": "pending"},
        }), 201
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to submit application")
        return internal_error_response()


@applications_bp.get("/mine")
@require_auth
def my_applications_route():
    try:
        page = ApplicationReviewService(db.session).list_for_user(g.current_user.id, request_page())
        return jsonify(page.to_dict()), 200
    except ValidationError as e:
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to list applications")
        return internal_error_response()
