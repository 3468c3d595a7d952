# blueprints/enrollments/groups.py
"""Группы записей: титуляр + несовершеннолетние + дополнительные взрослые.

Группа это все строки ``Enrollment`` с общим ``group_id``. Несовершеннолетние
висят на титуляре (``Minor.enrollment_id``). Каждая строка группы и каждый
несовершеннолетний занимают один билет курса.

Функции модуля ничего не коммитят: транзакцией управляет ``services.atomic``.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy import func, select

from extensions import db
from models import Course, Enrollment, EnrollmentGroup, Minor
from . import ledger
from .errors import NotFound, ValidationError
from .schemas import AdultIn, EnrollmentIn, EnrollmentUpdateIn, MinorIn

log = logging.getLogger(__name__)

UPDATE_MODE_UPSERT = "upsert"
UPDATE_MODE_RECONCILE = "reconcile"

# поля титуляра, которые можно обнулить явным null
_NULLABLE_FIELDS = {"id_admin"}
_ADULT_UPDATE_FIELDS = ("fullname", "email", "gender", "age")


# ----------------------- чтение группы -----------------------
def group_members(group_id: int, *, exclude_id: Optional[int] = None) -> list[Enrollment]:
    q = Enrollment.query.filter(Enrollment.group_id == group_id)
    if exclude_id is not None:
        q = q.filter(Enrollment.id != exclude_id)
    return q.order_by(Enrollment.id.asc()).all()


def adults_of(enrollment: Enrollment) -> list[Enrollment]:
    """Остальные взрослые той же группы (без самой записи)."""
    return group_members(enrollment.group_id, exclude_id=enrollment.id)


def group_size(group_id: int) -> int:
    """Сколько билетов занимает группа: все взрослые + все их несовершеннолетние."""
    member_ids = select(Enrollment.id).where(Enrollment.group_id == group_id)
    adults = db.session.scalar(select(func.count(Enrollment.id)).where(Enrollment.group_id == group_id)) or 0
    minors = db.session.scalar(
        select(func.count(Minor.id)).where(Minor.enrollment_id.in_(member_ids))
    ) or 0
    return adults + minors


def tickets_required(data: EnrollmentIn) -> int:
    # 1 титуляр + взрослые + несовершеннолетние
    return 1 + len(data.adults) + len(data.minors)


# ----------------------- group_id -----------------------
def _supplied_group(group_id: int, course_id: int) -> int:
    """Присланный group_id переиспользуется; если строки группы ещё нет, она создаётся с этим id."""
    if db.session.get(EnrollmentGroup, group_id) is None:
        db.session.add(EnrollmentGroup(id=group_id))
        db.session.flush()
        return group_id
    foreign = db.session.scalar(
        select(Enrollment.id).where(Enrollment.group_id == group_id, Enrollment.id_course != course_id).limit(1)
    )
    if foreign is not None:
        raise ValidationError(
            "Enrollment group belongs to another course.",
            details=[{"field": "group_id", "group_id": group_id}],
        )
    return group_id


def _new_group() -> int:
    grp = EnrollmentGroup()
    db.session.add(grp)
    db.session.flush()
    return grp.id


# ----------------------- helpers -----------------------
def _check_holder_age(age: int) -> None:
    min_age = int(current_app.config.get("MIN_HOLDER_AGE", 14))
    if age < min_age:
        raise ValidationError(
            f"The primary enrollee must be at least {min_age} years old.",
            details=[{"field": "age", "min": min_age, "value": age}],
        )


def _require_course(course_id: int) -> Course:
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found.", details={"course_id": course_id})
    return course


def _adult_row(adult: AdultIn, *, course_id: int, group_id: int, fallback_admin_id: Optional[int]) -> Enrollment:
    return Enrollment(
        fullname=adult.fullname,
        email=adult.email,
        gender=adult.gender,
        age=adult.age,
        is_first_activity=adult.is_first_activity,
        id_admin=adult.id_admin or fallback_admin_id,
        id_course=course_id,
        group_id=group_id,
        accepts_newsletter=adult.accepts_newsletter,
    )


def _upsert_minors(enrollment: Enrollment, minors: Iterable[MinorIn]) -> None:
    for m in minors:
        if m.id:
            row = Minor.query.filter_by(id=m.id, enrollment_id=enrollment.id).first()
            if row is None:
                log.warning("minor not in enrollment, skipped",
                            extra={"event": "minor_skipped", "enrollment_id": enrollment.id, "minor_id": m.id})
                continue
            row.name = m.name
            row.age = m.age
        else:
            db.session.add(Minor(name=m.name, age=m.age, enrollment_id=enrollment.id))


def _upsert_adults(enrollment: Enrollment, adults: Iterable[AdultIn], *, group_id: int) -> None:
    for a in adults:
        if a.id:
            row = Enrollment.query.filter_by(id=a.id, group_id=group_id).first()
            if row is None:
                log.warning("adult not in group, skipped",
                            extra={"event": "adult_skipped", "group_id": group_id, "adult_id": a.id})
                continue
            for field in _ADULT_UPDATE_FIELDS:
                setattr(row, field, getattr(a, field))
        else:
            db.session.add(_adult_row(a, course_id=enrollment.id_course, group_id=group_id,
                                      fallback_admin_id=enrollment.id_admin))


# ----------------------- create -----------------------
def create_group(data: EnrollmentIn, *, acting_admin_id: Optional[int] = None) -> Enrollment:
    """Титуляр + несовершеннолетние + взрослые одной группой.

    Билеты списываются до записи участников: при нехватке мест
    в базе не остаётся ничего.
    """
    _check_holder_age(data.age)
    _require_course(data.id_course)
    if data.group_id is not None:
        _supplied_group(data.group_id, data.id_course)

    total = tickets_required(data)
    ledger.reserve(data.id_course, total)

    group_id = data.group_id if data.group_id is not None else _new_group()
    id_admin = data.id_admin if data.id_admin is not None else acting_admin_id

    primary = Enrollment(
        fullname=data.fullname,
        email=data.email,
        gender=data.gender,
        age=data.age,
        is_first_activity=data.is_first_activity,
        id_admin=id_admin,
        id_course=data.id_course,
        group_id=group_id,
        accepts_newsletter=data.accepts_newsletter,
    )
    db.session.add(primary)
    db.session.flush()

    db.session.add_all([Minor(name=m.name, age=m.age, enrollment_id=primary.id) for m in data.minors])
    db.session.add_all([
        _adult_row(a, course_id=data.id_course, group_id=group_id, fallback_admin_id=id_admin)
        for a in data.adults
    ])
    db.session.flush()
    log.info("enrollment group created", extra={
        "event": "enrollment_created", "enrollment_id": primary.id, "group_id": group_id,
        "course_id": data.id_course, "tickets": total,
    })
    return primary


# ----------------------- update -----------------------
def _apply_scalar_fields(enrollment: Enrollment, fields: dict) -> None:
    for key, value in fields.items():
        if value is None and key not in _NULLABLE_FIELDS:
            continue
        setattr(enrollment, key, value)


def update_group(enrollment_id: int, data: EnrollmentUpdateIn, *, mode: str = UPDATE_MODE_UPSERT) -> Enrollment:
    enrollment = db.session.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found.", details={"enrollment_id": enrollment_id})

    fields = data.model_dump(exclude_unset=True, exclude={"minors", "adults"})
    if fields.get("age") is not None:
        _check_holder_age(fields["age"])
    if fields.get("id_course") is not None:
        _require_course(fields["id_course"])

    if mode == UPDATE_MODE_RECONCILE:
        return _update_reconciled(enrollment, fields, data)

    # upsert: group_id берётся из тела, если прислан; билеты не пересчитываются
    group_id = fields.get("group_id") or enrollment.group_id
    if group_id != enrollment.group_id and db.session.get(EnrollmentGroup, group_id) is None:
        raise NotFound("Enrollment group not found.", details={"group_id": group_id})

    _apply_scalar_fields(enrollment, fields)
    db.session.flush()

    _upsert_minors(enrollment, data.minors or [])
    _upsert_adults(enrollment, data.adults or [], group_id=group_id)
    db.session.flush()
    log.info("enrollment updated", extra={"event": "enrollment_updated", "enrollment_id": enrollment.id,
                                          "group_id": group_id, "mode": mode})
    return enrollment


def _update_reconciled(enrollment: Enrollment, fields: dict, data: EnrollmentUpdateIn) -> Enrollment:
    """Обновление с удалением пропавших участников и пересчётом билетов."""
    group_id = enrollment.group_id
    if fields.get("group_id") not in (None, group_id):
        raise ValidationError(
            "group_id cannot be changed on update.",
            details=[{"field": "group_id", "value": fields["group_id"], "current": group_id}],
        )
    fields.pop("group_id", None)

    old_course_id = enrollment.id_course
    new_course_id = fields.pop("id_course", None) or old_course_id
    before = group_size(group_id)

    _apply_scalar_fields(enrollment, fields)

    if data.minors is not None:
        keep = {m.id for m in data.minors if m.id}
        for row in list(enrollment.minors):
            if row.id not in keep:
                db.session.delete(row)
        db.session.flush()
        _upsert_minors(enrollment, data.minors)

    if data.adults is not None:
        keep = {a.id for a in data.adults if a.id}
        for row in adults_of(enrollment):
            if row.id not in keep:
                # у дополнительного взрослого тоже могут быть несовершеннолетние
                Minor.query.filter_by(enrollment_id=row.id).delete()
                db.session.delete(row)
        db.session.flush()
        _upsert_adults(enrollment, data.adults, group_id=group_id)

    db.session.flush()

    if new_course_id != old_course_id:
        for member in group_members(group_id):
            member.id_course = new_course_id
        db.session.flush()
        after = group_size(group_id)
        ledger.release(old_course_id, before)
        ledger.reserve(new_course_id, after)
    else:
        after = group_size(group_id)
        ledger.adjust(old_course_id, after - before)

    log.info("enrollment updated", extra={
        "event": "enrollment_updated", "enrollment_id": enrollment.id, "group_id": group_id,
        "mode": UPDATE_MODE_RECONCILE, "tickets": after - before,
    })
    return enrollment


# ----------------------- delete -----------------------
def delete_group(enrollment_id: int) -> int:
    """Удалить всю группу, в которую входит запись. Возвращает число вернувшихся билетов."""
    enrollment = db.session.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found.", details={"enrollment_id": enrollment_id})
    course = _require_course(enrollment.id_course)
    group_id = enrollment.group_id

    ids = [e.id for e in group_members(group_id)]
    minors_deleted = Minor.query.filter(Minor.enrollment_id.in_(ids)).delete(synchronize_session="fetch")
    adult_count = len(ids)
    Enrollment.query.filter(Enrollment.id.in_(ids)).delete(synchronize_session="fetch")
    EnrollmentGroup.query.filter_by(id=group_id).delete(synchronize_session="fetch")

    returned = minors_deleted + adult_count
    ledger.release(course.id, returned)
    log.info("enrollment group deleted", extra={
        "event": "enrollment_deleted", "enrollment_id": enrollment_id, "group_id": group_id,
        "course_id": course.id, "tickets": returned,
    })
    return returned
