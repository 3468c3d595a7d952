"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset         # дропнуть и пересоздать БД + демо-курсы + superadmin/pass
  python seed.py --ensure-admin  # создать только superadmin/pass (без сидов)
  python seed.py                 # мягкое наполнение недостающих данных (idempotent)
"""
from datetime import date, timedelta
import argparse
import logging
from sqlalchemy import func

from app import create_app
from extensions import db
from models import Admin, AdminRole, Course, Enrollment
from blueprints.enrollments.services import create_enrollment

log = logging.getLogger("seed")

DEMO_COURSES = [
    {
        "title": "Taller de cerámica",
        "description": "Iniciación al modelado en barro para todas las edades.",
        "days": 7,
        "link": "https://example.org/cursos/ceramica",
        "tickets": 20,
    },
    {
        "title": "Astronomía en familia",
        "description": "Observación nocturna guiada con telescopios.",
        "days": 14,
        "link": "https://example.org/cursos/astronomia",
        "tickets": 12,
    },
    {
        "title": "Robótica básica",
        "description": "Montaje y programación de un robot sencillo.",
        "days": 21,
        "link": "https://example.org/cursos/robotica",
        "tickets": 8,
    },
]

def get_or_create_course(item: dict) -> tuple[Course, bool]:
    """Курс ищется по title: повторный запуск не плодит дубли."""
    course = Course.query.filter_by(title=item["title"]).first()
    if course:
        return course, False
    course = Course(
        title=item["title"],
        description=item["description"],
        date=date.today() + timedelta(days=item["days"]),
        link=item["link"],
        tickets=item["tickets"],
    )
    db.session.add(course)
    db.session.flush()
    return course, True

def seed_courses() -> dict[str, int]:
    ids = {}
    for item in DEMO_COURSES:
        course, _ = get_or_create_course(item)
        ids[item["title"]] = course.id
    db.session.commit()
    return ids

def seed_demo_group(course_id: int, admin_id: int | None) -> bool:
    """Одна семья на первом курсе; билеты списываются тем же путём, что и через API."""
    if Enrollment.query.filter_by(id_course=course_id).first():
        return False
    create_enrollment({
        "fullname": "Lucía Fernández",
        "email": "lucia@example.org",
        "gender": "F",
        "age": 38,
        "id_course": course_id,
        "accepts_newsletter": True,
        "minors": [{"name": "Pablo", "age": 9}, {"name": "Irene", "age": 6}],
        "adults": [{"fullname": "Marcos Gil", "email": "marcos@example.org", "age": 40}],
    }, admin_id=admin_id)
    return True

# ---- админ ----
def ensure_admin(username: str = "superadmin", password: str = "pass") -> bool:
    exists = db.session.query(Admin).filter(func.lower(Admin.username) == username.lower()).first()
    if exists:
        return False
    a = Admin(username=username, role=AdminRole.SUPERADMIN.value, is_active_flag=True)
    a.set_password(password)
    db.session.add(a)
    db.session.commit()
    return True

def _superadmin_id() -> int | None:
    a = Admin.query.filter_by(role=AdminRole.SUPERADMIN.value).order_by(Admin.id).first()
    return a.id if a else None

def seed_all() -> None:
    ensure_admin()
    ids = seed_courses()
    first = ids[DEMO_COURSES[0]["title"]]
    seed_demo_group(first, _superadmin_id())

# ---- main ----
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--ensure-admin", action="store_true", help="create only superadmin/pass")
    parser.add_argument("--config", default=None, help="dev | prod | test (по умолчанию FLASK_CONFIG)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    app = create_app(args.config)
    with app.app_context():
        if args.reset:
            db.drop_all()
            db.create_all()
            seed_all()
            log.info("[seed] reset+seed complete")
            return

        if args.ensure_admin:
            created = ensure_admin()
            log.info("Admin created." if created else "Admin already exists.")
            return

        # режим по умолчанию: мягкое наполнение недостающих данных
        db.create_all()
        seed_all()
        log.info("[seed] soft seed complete")

if __name__ == "__main__":
    main()
