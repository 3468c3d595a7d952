# blueprints/admins/routes.py
from __future__ import annotations
from typing import Optional

from flask import Blueprint, jsonify, request, url_for
from flask_login import current_user
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.exc import IntegrityError

from blueprints.auth.routes import superadmin_required
from extensions import db
from models import Admin, AdminRole, Enrollment

api_bp = Blueprint("admins_api", __name__)

ROLE_PATTERN = f"^({AdminRole.ADMIN.value}|{AdminRole.SUPERADMIN.value})$"

class AdminIn(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    role: str = Field(AdminRole.ADMIN.value, pattern=ROLE_PATTERN)

class AdminUpdateIn(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: Optional[str] = Field(None, min_length=1)
    role: Optional[str] = Field(None, pattern=ROLE_PATTERN)
    is_active: Optional[bool] = None

class AdminOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    is_active: bool

def _json_err(msg: str, http: int = 400, code: str | None = None, errors: list | None = None):
    body: dict = {"message": msg}
    if code:
        body["code"] = code
    if errors:
        body["errors"] = errors
    return jsonify(body), http

def _errors(ve: ValidationError) -> list[dict]:
    return [{"field": ".".join(map(str, e["loc"])), "msg": e["msg"]} for e in ve.errors()]

def _out(a: Admin) -> dict:
    return AdminOut.model_validate(a).model_dump()

@api_bp.get("/admins")
@superadmin_required
def api_admins_list():
    rows = Admin.query.order_by(Admin.id.asc()).all()
    return jsonify({"items": [_out(a) for a in rows]})

@api_bp.get("/admins/<int:id>")
@superadmin_required
def api_admins_get(id: int):
    a = db.session.get(Admin, id)
    if a is None:
        return _json_err("Admin not found.", 404, "NOT_FOUND")
    return jsonify(_out(a))

@api_bp.post("/admins")
@superadmin_required
def api_admins_create():
    try:
        data = AdminIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _json_err("Invalid admin data.", 400, "VALIDATION_ERROR", _errors(ve))
    a = Admin(username=data.username.strip(), role=data.role)
    a.set_password(data.password)
    db.session.add(a)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _json_err("Username already taken.", 409, "UNIQUE_CONSTRAINT")
    resp = jsonify(_out(a))
    resp.status_code = 201
    resp.headers["Location"] = url_for("admins_api.api_admins_get", id=a.id)
    return resp

@api_bp.put("/admins/<int:id>")
@superadmin_required
def api_admins_update(id: int):
    try:
        data = AdminUpdateIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _json_err("Invalid admin data.", 400, "VALIDATION_ERROR", _errors(ve))
    a = db.session.get(Admin, id)
    if a is None:
        return _json_err("Admin not found.", 404, "NOT_FOUND")
    a.username = data.username.strip()
    if data.password:
        a.set_password(data.password)
    if data.role:
        a.role = data.role
    if data.is_active is not None:
        a.is_active_flag = data.is_active
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _json_err("Username already taken.", 409, "UNIQUE_CONSTRAINT")
    return jsonify(_out(a))

@api_bp.delete("/admins/<int:id>")
@superadmin_required
def api_admins_delete(id: int):
    if id == current_user.id:
        return _json_err("You cannot delete yourself.", 409, "SELF_DELETE")
    a = db.session.get(Admin, id)
    if a is None:
        return _json_err("Admin not found.", 404, "NOT_FOUND")
    # записи остаются, ссылка на администратора обнуляется
    Enrollment.query.filter_by(id_admin=id).update({"id_admin": None})
    db.session.delete(a)
    db.session.commit()
    return "", 204
