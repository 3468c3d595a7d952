from __future__ import annotations
from datetime import date

import pytest
from sqlalchemy import select

from app import create_app
from extensions import db
from models import Admin, AdminRole, Course, Enrollment

@pytest.fixture()
def client_app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        a = Admin(username="clerk", role=AdminRole.ADMIN.value)
        a.set_password("pass")
        db.session.add(a)
        db.session.add(Course(title="Cerámica para familias", description="Taller", date=date(2030, 5, 1),
                              link="https://example.org/ceramica", tickets=5))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(client_app):
    c = client_app.test_client()
    r = c.post("/api/v1/auth/login", json={"username": "clerk", "password": "pass"})
    assert r.status_code == 200, r.get_json()
    return c

def _course_id() -> int:
    return db.session.scalar(select(Course.id).where(Course.title == "Cerámica para familias"))

def _tickets() -> int:
    return db.session.scalar(select(Course.tickets).where(Course.id == _course_id()))

def _family(**kw) -> dict:
    body = {
        "fullname": "Ana Ruiz", "email": "ana@example.org", "age": 35, "id_course": _course_id(),
        "minors": [{"name": "Leo", "age": 8}],
        "adults": [{"fullname": "Juan Ruiz", "email": "juan@example.org", "age": 37}],
    }
    body.update(kw)
    return body

def test_family_lifecycle(client):
    # 5 мест, семья из трёх -> остаётся 2
    r = client.post("/api/v1/enrollments", json=_family())
    assert r.status_code == 201, r.get_json()
    js = r.get_json()
    assert js["message"] == "Enrollment created successfully."
    enrollment_id = js["enrollment"]["id"]
    assert _tickets() == 2

    # ещё три не влезают: 400, остаток не меняется
    r2 = client.post("/api/v1/enrollments", json=_family(email="otra@example.org"))
    assert r2.status_code == 400
    assert r2.get_json()["code"] == "INSUFFICIENT_CAPACITY"
    assert _tickets() == 2

    # удаление возвращает все три билета
    r3 = client.delete(f"/api/v1/enrollments/{enrollment_id}")
    assert r3.status_code == 200
    assert r3.get_json() == {"message": "Enrollment deleted successfully.", "ticketsReturned": 3}
    assert _tickets() == 5
    assert client.get(f"/api/v1/enrollments/{enrollment_id}").status_code == 404

def test_create_records_acting_admin(client):
    r = client.post("/api/v1/enrollments", json=_family(minors=[], adults=[]))
    admin_id = db.session.scalar(select(Admin.id).where(Admin.username == "clerk"))
    assert r.get_json()["enrollment"]["id_admin"] == admin_id

def test_supplied_group_id_is_reused(client):
    r = client.post("/api/v1/enrollments", json=_family(group_id=77))
    assert r.status_code == 201, r.get_json()
    assert r.get_json()["enrollment"]["group_id"] == 77
    d = client.get(f"/api/v1/enrollments/{r.get_json()['enrollment']['id']}").get_json()
    assert [a["fullname"] for a in d["adults"]] == ["Juan Ruiz"]

def test_unknown_course_with_existing_group_404(client):
    first = client.post("/api/v1/enrollments", json=_family(minors=[], adults=[])).get_json()
    r = client.post("/api/v1/enrollments", json=_family(id_course=999, minors=[], adults=[],
                                                        group_id=first["enrollment"]["group_id"]))
    assert r.status_code == 404
    assert r.get_json()["code"] == "NOT_FOUND"

def test_missing_fields_message(client):
    r = client.post("/api/v1/enrollments", json={"fullname": "Solo"})
    assert r.status_code == 400
    js = r.get_json()
    assert js["code"] == "VALIDATION_ERROR"
    assert js["message"].startswith("Missing required fields:")
    assert _tickets() == 5

def test_young_holder_rejected(client):
    r = client.post("/api/v1/enrollments", json=_family(age=13))
    assert r.status_code == 400
    assert r.get_json()["errors"][0]["field"] == "age"
    assert _tickets() == 5

def test_unknown_course_404(client):
    r = client.post("/api/v1/enrollments", json=_family(id_course=999))
    assert r.status_code == 404
    assert r.get_json()["code"] == "NOT_FOUND"

def test_reads_are_idempotent(client):
    eid = client.post("/api/v1/enrollments", json=_family()).get_json()["enrollment"]["id"]
    before = _tickets()

    d1 = client.get(f"/api/v1/enrollments/{eid}").get_json()
    d2 = client.get(f"/api/v1/enrollments/{eid}").get_json()
    assert d1 == d2
    assert [a["fullname"] for a in d1["adults"]] == ["Juan Ruiz"]
    assert [m["name"] for m in d1["minors"]] == ["Leo"]

    wm = client.get(f"/api/v1/enrollments/{eid}/with-minors").get_json()
    assert "adults" not in wm and len(wm["minors"]) == 1

    listing = client.get("/api/v1/enrollments").get_json()
    assert listing["meta"]["total"] == 2
    assert listing["items"][0]["course"]["title"] == "Cerámica para familias"

    by_course = client.get(f"/api/v1/enrollments/course/{_course_id()}").get_json()
    assert {e["fullname"] for e in by_course} == {"Ana Ruiz", "Juan Ruiz"}
    assert _tickets() == before

def test_by_course_unknown_404(client):
    assert client.get("/api/v1/enrollments/course/999").status_code == 404

def test_update_upsert_default(client):
    eid = client.post("/api/v1/enrollments", json=_family()).get_json()["enrollment"]["id"]
    r = client.put(f"/api/v1/enrollments/{eid}", json={"email": "ana.ruiz@example.org",
                                                        "minors": [{"name": "Sara", "age": 2}]})
    assert r.status_code == 200
    assert r.get_json() == {"message": "Enrollment updated successfully."}
    d = client.get(f"/api/v1/enrollments/{eid}").get_json()
    assert d["email"] == "ana.ruiz@example.org"
    assert [m["name"] for m in d["minors"]] == ["Leo", "Sara"]
    assert _tickets() == 2

def test_update_reconcile_mode(client_app, client):
    client_app.config["ENROLLMENT_UPDATE_MODE"] = "reconcile"
    eid = client.post("/api/v1/enrollments", json=_family()).get_json()["enrollment"]["id"]
    r = client.put(f"/api/v1/enrollments/{eid}", json={"minors": [], "adults": []})
    assert r.status_code == 200
    assert _tickets() == 4
    assert db.session.scalar(select(Enrollment.id).where(Enrollment.fullname == "Juan Ruiz")) is None

def test_update_bad_age_leaves_row(client):
    eid = client.post("/api/v1/enrollments", json=_family()).get_json()["enrollment"]["id"]
    r = client.put(f"/api/v1/enrollments/{eid}", json={"fullname": "Otra", "age": 5})
    assert r.status_code == 400
    assert client.get(f"/api/v1/enrollments/{eid}").get_json()["fullname"] == "Ana Ruiz"

def test_delete_unknown_404(client):
    r = client.delete("/api/v1/enrollments/4242")
    assert r.status_code == 404
    assert _tickets() == 5
