from __future__ import annotations
import pytest
from sqlalchemy import func, select

from app import create_app
from extensions import db
from models import Admin, Course, Enrollment, Minor
import seed

@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

def test_seed_is_idempotent(app):
    seed.seed_all()
    seed.seed_all()
    assert db.session.scalar(select(func.count(Admin.id))) == 1
    assert db.session.scalar(select(func.count(Course.id))) == len(seed.DEMO_COURSES)
    # демо-семья: два взрослых и двое детей
    assert db.session.scalar(select(func.count(Enrollment.id))) == 2
    assert db.session.scalar(select(func.count(Minor.id))) == 2

def test_seed_group_goes_through_ledger(app):
    seed.seed_all()
    first = seed.DEMO_COURSES[0]
    tickets = db.session.scalar(select(Course.tickets).where(Course.title == first["title"]))
    assert tickets == first["tickets"] - 4

def test_ensure_admin(app):
    assert seed.ensure_admin() is True
    assert seed.ensure_admin() is False
