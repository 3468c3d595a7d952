# blueprints/reports/routes.py
from __future__ import annotations
from flask import Blueprint, request, Response, jsonify

from blueprints.auth.routes import admin_required
from .services import enrollments_csv, course_exists

api_bp = Blueprint("reports_api", __name__)

def _csv_resp(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@api_bp.get("/admin/reports/enrollments.csv")
@admin_required
def enrollments_report():
    raw = (request.args.get("course_id") or "").strip()
    if raw and not raw.isdigit():
        return jsonify({"message": "course_id must be an integer.", "code": "VALIDATION_ERROR"}), 400
    course_id = int(raw) if raw else None
    if course_id is not None and not course_exists(course_id):
        return jsonify({"message": "Course not found.", "code": "NOT_FOUND"}), 404
    csv_data = enrollments_csv(course_id)
    return _csv_resp(csv_data, f"enrollments{'_' + str(course_id) if course_id else ''}.csv")
