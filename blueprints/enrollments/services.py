# blueprints/enrollments/services.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

from flask import current_app
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from extensions import db
from models import Course, Enrollment
from . import groups
from .errors import EnrollmentError, NotFound, StorageFailure, ValidationError
from .schemas import (
    AdultOut,
    EnrollmentDetailOut,
    EnrollmentIn,
    EnrollmentListOut,
    EnrollmentOut,
    EnrollmentUpdateIn,
    EnrollmentWithMinorsOut,
    MinorOut,
)

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# ----------------------- транзакция -----------------------
@contextmanager
def atomic() -> Iterator[Any]:
    """Всё или ничего: commit при успехе, полный rollback при любой ошибке."""
    session = db.session
    try:
        yield session
        session.commit()
    except EnrollmentError:
        session.rollback()
        raise
    except SQLAlchemyError as ex:
        session.rollback()
        log.exception("storage failure, transaction rolled back", extra={"event": "storage_failure"})
        raise StorageFailure("Storage error while processing the enrollment.") from ex
    except Exception:
        session.rollback()
        raise


def _pydantic_errors_safe(ve: PydanticValidationError) -> list[dict]:
    errs = []
    for e in ve.errors():
        errs.append({
            "field": ".".join(str(p) for p in e.get("loc", ())),
            "type": e.get("type"),
            "msg": e.get("msg"),
        })
    return errs


def parse_payload(schema: Type[M], payload: Any) -> M:
    try:
        return schema.model_validate(payload if payload is not None else {})
    except PydanticValidationError as ve:
        errors = _pydantic_errors_safe(ve)
        missing = [e["field"] for e in errors if e["type"] == "missing"]
        if missing:
            msg = "Missing required fields: " + ", ".join(missing) + "."
        else:
            msg = "Invalid enrollment data."
        raise ValidationError(msg, details=errors) from ve


# ----------------------- операции записи -----------------------
def create_enrollment(payload: Any, *, admin_id: Optional[int] = None) -> Enrollment:
    data = parse_payload(EnrollmentIn, payload)
    with atomic():
        primary = groups.create_group(data, acting_admin_id=admin_id)
    return primary


def update_enrollment(enrollment_id: int, payload: Any, *, mode: Optional[str] = None) -> Enrollment:
    data = parse_payload(EnrollmentUpdateIn, payload)
    mode = mode or current_app.config.get("ENROLLMENT_UPDATE_MODE", groups.UPDATE_MODE_UPSERT)
    if mode not in (groups.UPDATE_MODE_UPSERT, groups.UPDATE_MODE_RECONCILE):
        raise ValueError(f"unknown ENROLLMENT_UPDATE_MODE: {mode}")
    with atomic():
        enrollment = groups.update_group(enrollment_id, data, mode=mode)
    return enrollment


def delete_enrollment(enrollment_id: int) -> int:
    with atomic():
        returned = groups.delete_group(enrollment_id)
    return returned


# ----------------------- чтение -----------------------
def serialize(enrollment: Enrollment) -> Dict[str, Any]:
    return EnrollmentOut.model_validate(enrollment).model_dump(mode="json")


def _get_or_404(enrollment_id: int) -> Enrollment:
    enrollment = db.session.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found.", details={"enrollment_id": enrollment_id})
    return enrollment


def get_enrollment(enrollment_id: int) -> Dict[str, Any]:
    enrollment = _get_or_404(enrollment_id)
    out = EnrollmentDetailOut.model_validate({
        **serialize(enrollment),
        "minors": [MinorOut.model_validate(m) for m in enrollment.minors],
        "adults": [AdultOut.model_validate(a) for a in groups.adults_of(enrollment)],
    })
    return out.model_dump(mode="json")


def get_enrollment_with_minors(enrollment_id: int) -> Dict[str, Any]:
    enrollment = _get_or_404(enrollment_id)
    return EnrollmentWithMinorsOut.model_validate(enrollment).model_dump(mode="json")


def like_pattern(term: str) -> str:
    """Подстрока для LIKE: % и _ из ввода ищутся буквально (escape="\\")."""
    term = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{term}%"


def _list_query():
    return Enrollment.query.options(
        selectinload(Enrollment.course), selectinload(Enrollment.minors)
    )


def list_enrollments(*, page: int = 1, per_page: int = 20, q: str = "") -> Dict[str, Any]:
    s = _list_query()
    if q:
        like = like_pattern(q)
        s = s.filter(Enrollment.fullname.like(like, escape="\\") | Enrollment.email.like(like, escape="\\"))
    s = s.order_by(Enrollment.id.asc())
    total = s.count()
    rows = s.offset((page - 1) * per_page).limit(per_page).all()
    items = [EnrollmentListOut.model_validate(r).model_dump(mode="json") for r in rows]
    return {"items": items, "meta": {"page": page, "per_page": per_page, "total": total}}


def list_course_enrollments(course_id: int) -> list[Dict[str, Any]]:
    if db.session.get(Course, course_id) is None:
        raise NotFound("Course not found.", details={"course_id": course_id})
    rows = _list_query().filter(Enrollment.id_course == course_id).order_by(Enrollment.group_id, Enrollment.id).all()
    return [EnrollmentListOut.model_validate(r).model_dump(mode="json") for r in rows]
