# blueprints/enrollments/routes.py
from __future__ import annotations
import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user

from blueprints.auth.routes import admin_required
from . import services as svc
from .errors import EnrollmentError

log = logging.getLogger(__name__)

api_bp = Blueprint("enrollments_api", __name__)


@api_bp.app_errorhandler(EnrollmentError)
def _enrollment_error(err: EnrollmentError):
    if err.status >= 500:
        log.error("enrollment request failed", extra={"event": "enrollment_error", "path": request.path})
    return jsonify(err.to_dict()), err.status


def page_args() -> tuple[int, int]:
    try:
        page = max(1, int(request.args.get("page", 1)))
        per_page = min(100, max(1, int(request.args.get("per_page", 20))))
    except ValueError:
        page, per_page = 1, 20
    return page, per_page


# ---------- чтение ----------
@api_bp.get("/enrollments")
@admin_required
def api_enrollments_list():
    page, per_page = page_args()
    return jsonify(svc.list_enrollments(page=page, per_page=per_page, q=request.args.get("q", "")))


@api_bp.get("/enrollments/<int:id>")
@admin_required
def api_enrollments_get(id: int):
    return jsonify(svc.get_enrollment(id))


@api_bp.get("/enrollments/<int:id>/with-minors")
@admin_required
def api_enrollments_get_with_minors(id: int):
    return jsonify(svc.get_enrollment_with_minors(id))


@api_bp.get("/enrollments/course/<int:course_id>")
@admin_required
def api_enrollments_by_course(course_id: int):
    return jsonify(svc.list_course_enrollments(course_id))


# ---------- изменения ----------
@api_bp.post("/enrollments")
@admin_required
def api_enrollments_create():
    payload = request.get_json(silent=True)
    enrollment = svc.create_enrollment(payload, admin_id=current_user.id)
    return jsonify({
        "message": "Enrollment created successfully.",
        "enrollment": svc.serialize(enrollment),
    }), 201


@api_bp.put("/enrollments/<int:id>")
@admin_required
def api_enrollments_update(id: int):
    payload = request.get_json(silent=True)
    svc.update_enrollment(id, payload)
    return jsonify({"message": "Enrollment updated successfully."})


@api_bp.delete("/enrollments/<int:id>")
@admin_required
def api_enrollments_delete(id: int):
    returned = svc.delete_enrollment(id)
    return jsonify({"message": "Enrollment deleted successfully.", "ticketsReturned": returned})
