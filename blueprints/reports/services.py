# blueprints/reports/services.py
from __future__ import annotations
from io import StringIO
import csv
from typing import List, Optional, Tuple

from sqlalchemy.orm import selectinload

from models import Course, Enrollment

HEADER = ["course", "group_id", "enrollment_id", "role", "fullname", "email", "gender",
          "age", "is_first_activity", "accepts_newsletter"]

def enrollments_csv(course_id: Optional[int] = None) -> str:
    """
    CSV: course;group_id;enrollment_id;role;fullname;email;gender;age;is_first_activity;accepts_newsletter
    role ∈ {"adult","minor"}; несовершеннолетние идут сразу за своим взрослым.
    """
    q = Enrollment.query.options(selectinload(Enrollment.minors), selectinload(Enrollment.course))
    if course_id is not None:
        q = q.filter(Enrollment.id_course == course_id)
    # сортировка стабильная: курс, группа, запись
    q = q.order_by(Enrollment.id_course.asc(), Enrollment.group_id.asc(), Enrollment.id.asc())

    rows: List[Tuple] = []
    for e in q.all():
        title = getattr(e.course, "title", "")
        rows.append((
            title, e.group_id, e.id, "adult", e.fullname, e.email, e.gender, e.age,
            int(bool(e.is_first_activity)), int(bool(e.accepts_newsletter)),
        ))
        for m in e.minors:
            rows.append((title, e.group_id, e.id, "minor", m.name, "", "", m.age, "", ""))

    buf = StringIO()
    w = csv.writer(buf, delimiter=";")
    w.writerow(HEADER)
    w.writerows(rows)
    return buf.getvalue()

def course_exists(course_id: int) -> bool:
    return Course.query.filter_by(id=course_id).first() is not None
