# blueprints/courses/routes.py
from __future__ import annotations
import logging
from typing import Any

from flask import Blueprint, jsonify, request, url_for
from pydantic import ValidationError
from sqlalchemy import func

from blueprints.auth.routes import admin_required
from blueprints.enrollments.routes import page_args
from blueprints.enrollments.services import like_pattern
from extensions import db
from models import Course, Enrollment
from .schemas import CourseIn, CourseOut, CourseUpdateIn

log = logging.getLogger(__name__)

api_bp = Blueprint("courses_api", __name__)

# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, code: str | None = None, errors: list | None = None):
    payload: dict[str, Any] = {"message": msg}
    if code: payload["code"] = code
    if errors: payload["errors"] = errors
    return jsonify(payload), status

def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors()
    for e in errs:
        e.pop("url", None)
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
    return errs

def _out(c: Course) -> dict:
    return CourseOut.model_validate(c).model_dump(mode="json")

# ----------------------- CRUD JSON API -----------------------
@api_bp.get("/courses")
@admin_required
def api_courses_list():
    q = request.args.get("q", "")
    page, per_page = page_args()
    s = db.session.query(Course)
    if q:
        s = s.filter(Course.title.like(like_pattern(q), escape="\\"))
    s = s.order_by(Course.date.asc(), Course.id.asc())
    total = s.count()
    rows = s.offset((page - 1) * per_page).limit(per_page).all()
    return ok({"items": [_out(c) for c in rows], "meta": {"page": page, "per_page": per_page, "total": total}})

@api_bp.post("/courses")
@admin_required
def api_courses_create():
    payload = request.get_json(silent=True) or {}
    try:
        parsed = CourseIn.model_validate(payload)
    except ValidationError as ve:
        return error("Invalid course data.", 400, "VALIDATION_ERROR", _pydantic_errors_safe(ve))
    c = Course(
        title=parsed.title,
        description=parsed.description,
        date=parsed.date,
        link=str(parsed.link),
        tickets=parsed.tickets,
    )
    db.session.add(c)
    db.session.commit()
    log.info("course created", extra={"event": "course_created", "course_id": c.id, "tickets": c.tickets})
    return created(url_for("courses_api.api_courses_get", id=c.id), _out(c))

@api_bp.get("/courses/<int:id>")
@admin_required
def api_courses_get(id: int):
    c = db.session.get(Course, id)
    if c is None:
        return error("Course not found.", 404, "NOT_FOUND")
    return ok(_out(c))

@api_bp.put("/courses/<int:id>")
@admin_required
def api_courses_update(id: int):
    payload = request.get_json(silent=True) or {}
    try:
        parsed = CourseUpdateIn.model_validate(payload)
    except ValidationError as ve:
        return error("Invalid course data.", 400, "VALIDATION_ERROR", _pydantic_errors_safe(ve))
    c = db.session.get(Course, id)
    if c is None:
        return error("Course not found.", 404, "NOT_FOUND")
    for key, value in parsed.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        # ручная правка остатка билетов (ресайз курса администратором)
        setattr(c, key, str(value) if key == "link" else value)
    db.session.commit()
    return ok(_out(c))

@api_bp.delete("/courses/<int:id>")
@admin_required
def api_courses_delete(id: int):
    c = db.session.get(Course, id)
    if c is None:
        return error("Course not found.", 404, "NOT_FOUND")
    enrolled = db.session.scalar(db.select(func.count(Enrollment.id)).where(Enrollment.id_course == id))
    if enrolled:
        return error("Course has enrollments.", 409, "COURSE_HAS_ENROLLMENTS")
    db.session.delete(c)
    db.session.commit()
    return "", 204
