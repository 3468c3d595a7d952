from __future__ import annotations
from datetime import date

import pytest
from sqlalchemy import select

from app import create_app
from extensions import db
from models import Admin, AdminRole, Course, Enrollment

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        root = Admin(username="root", role=AdminRole.SUPERADMIN.value)
        root.set_password("pass")
        db.session.add(root)
        db.session.commit()
        c = app.test_client()
        assert c.post("/api/v1/auth/login", json={"username": "root", "password": "pass"}).status_code == 200
        yield c
        db.session.remove()
        db.drop_all()

def test_crud_cycle(client):
    r = client.post("/api/v1/admins", json={"username": "clerk", "password": "pass"})
    assert r.status_code == 201
    js = r.get_json()
    assert js["role"] == "ADMIN" and js["is_active"] is True

    dup = client.post("/api/v1/admins", json={"username": "clerk", "password": "x"})
    assert dup.status_code == 409

    up = client.put(f"/api/v1/admins/{js['id']}", json={"username": "clerk", "is_active": False})
    assert up.status_code == 200
    assert up.get_json()["is_active"] is False

    names = [a["username"] for a in client.get("/api/v1/admins").get_json()["items"]]
    assert names == ["root", "clerk"]

def test_bad_role_rejected(client):
    r = client.post("/api/v1/admins", json={"username": "x", "password": "p", "role": "OWNER"})
    assert r.status_code == 400
    assert r.get_json()["code"] == "VALIDATION_ERROR"

def test_cannot_delete_self(client):
    me = client.get("/api/v1/auth/me").get_json()
    r = client.delete(f"/api/v1/admins/{me['id']}")
    assert r.status_code == 409
    assert r.get_json()["code"] == "SELF_DELETE"

def test_delete_keeps_enrollments(client):
    aid = client.post("/api/v1/admins", json={"username": "clerk", "password": "pass"}).get_json()["id"]
    course = Course(title="Robótica básica", description="x", date=date(2030, 1, 1),
                    link="https://example.org/robotica", tickets=3)
    db.session.add(course)
    db.session.commit()
    r = client.post("/api/v1/enrollments", json={
        "fullname": "Ana Ruiz", "email": "ana@example.org", "age": 30,
        "id_course": course.id, "id_admin": aid,
    })
    assert r.status_code == 201
    eid = r.get_json()["enrollment"]["id"]

    assert client.delete(f"/api/v1/admins/{aid}").status_code == 204
    assert db.session.scalar(select(Enrollment.id_admin).where(Enrollment.id == eid)) is None
