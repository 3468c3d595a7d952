# blueprints/enrollments/ledger.py
"""Учёт билетов курса.

Оба метода работают внутри транзакции вызывающего: ничего не коммитят,
только блокируют строку курса и меняют ``Course.tickets`` SQL-выражением.
Отрицательный остаток дополнительно запрещён CHECK-ограничением в БД.
"""
from __future__ import annotations
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Course
from .errors import InsufficientCapacity, NotFound

log = logging.getLogger(__name__)


def _locked_course(course_id: int) -> Course:
    # SELECT ... FOR UPDATE; на SQLite блокировка игнорируется диалектом.
    # populate_existing: курс из identity map перечитывается под блокировкой
    course = db.session.execute(
        select(Course).where(Course.id == course_id).with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if course is None:
        raise NotFound("Course not found.", details={"course_id": course_id})
    return course


def reserve(course_id: int, count: int) -> Course:
    """Списать ``count`` билетов с курса."""
    if count < 0:
        raise ValueError("count must be >= 0")
    course = _locked_course(course_id)
    if count == 0:
        return course
    if course.tickets < count:
        raise InsufficientCapacity(course_id, count, course.tickets)

    course.tickets = Course.tickets - count
    try:
        db.session.flush()
    except IntegrityError as ex:
        # параллельная транзакция успела списать раньше нас
        log.warning("ticket check constraint hit", extra={"event": "tickets_oversell", "course_id": course_id})
        raise InsufficientCapacity(course_id, count, None) from ex

    log.info("tickets reserved", extra={"event": "tickets_reserved", "course_id": course_id, "count": count})
    return course


def release(course_id: int, count: int) -> Course:
    """Вернуть ``count`` билетов курсу. Верхней границы нет."""
    if count < 0:
        raise ValueError("count must be >= 0")
    course = _locked_course(course_id)
    if count == 0:
        return course

    course.tickets = Course.tickets + count
    db.session.flush()
    log.info("tickets released", extra={"event": "tickets_released", "course_id": course_id, "count": count})
    return course


def adjust(course_id: int, delta: int) -> Course:
    """delta > 0: списать, delta < 0: вернуть."""
    if delta >= 0:
        return reserve(course_id, delta)
    return release(course_id, -delta)
